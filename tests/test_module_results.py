from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from _fakes import FakeEngine, FakeParagraphWriter, fake_pdf, labels_of
from pdf_edit.contracts import (
    EngineName,
    OperationResult,
    PdfEditConfig,
    Redaction,
    TextStampParams,
    WatermarkParams,
)
from pdf_edit.errors import ErrorKind
from pdf_edit.module import (
    _get_engine,
    run_add_text,
    run_convert_docx,
    run_convert_markdown,
    run_extract,
    run_info,
    run_merge,
    run_redact,
    run_redact_multiple,
    run_remove,
    run_retrieve,
    run_split,
    run_watermark,
)


class TestModuleResults(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.out_root = Path(self._tmp.name) / "uploads"
        self.config = PdfEditConfig(out_root=self.out_root)
        self.engine = FakeEngine()
        patcher = patch("pdf_edit.module._get_engine", return_value=self.engine)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _read(self, name: str) -> bytes:
        return (self.out_root / name).read_bytes()

    def test_merge_persists_one_artifact(self) -> None:
        r = run_merge(config=self.config, sources=[fake_pdf("a"), fake_pdf("b", "c")], original_filename="in.pdf")
        self.assertTrue(r.success)
        self.assertEqual(r.message, "PDFs merged successfully")
        (name,) = r.output_names
        self.assertTrue(name.startswith("in_merged_") and name.endswith(".pdf"))
        self.assertEqual(labels_of(self._read(name)), ["a", "b", "c"])

    def test_split_legacy_reports_pages(self) -> None:
        r = run_split(config=self.config, data=fake_pdf("p1", "p2", "p3"))
        self.assertTrue(r.success)
        self.assertEqual(r.message, "PDF split into 3 pages")
        self.assertEqual(len(r.output_names), 3)
        self.assertTrue(r.output_names[0].startswith("page_1_"))
        self.assertEqual([labels_of(self._read(n)) for n in r.output_names], [["p1"], ["p2"], ["p3"]])

    def test_split_groups_skip_empty(self) -> None:
        r = run_split(config=self.config, data=fake_pdf("p1", "p2", "p3"), groups="1-2;9;3")
        self.assertEqual(r.message, "PDF split into 2 documents")
        self.assertEqual([n.split("_")[0] + "_" + n.split("_")[1] for n in r.output_names], ["part_1", "part_2"])
        self.assertEqual([labels_of(self._read(n)) for n in r.output_names], [["p1", "p2"], ["p3"]])

    def test_split_syntax_error_is_validation_failure(self) -> None:
        r = run_split(config=self.config, data=fake_pdf("p1"), groups="1-x")
        self.assertFalse(r.success)
        self.assertIsNone(r.output_reference)
        self.assertEqual(r.error.kind, ErrorKind.VALIDATION)
        self.assertEqual(r.error.code, "RANGE_SYNTAX")
        self.assertFalse(self.out_root.exists())

    def test_extract_accepts_page_list_text(self) -> None:
        r = run_extract(config=self.config, data=fake_pdf("p1", "p2", "p3"), pages="3,1")
        self.assertEqual(r.message, "Pages extracted successfully")
        self.assertEqual(labels_of(self._read(r.output_reference)), ["p3", "p1"])

    def test_extract_nothing_in_range_succeeds_with_empty_artifact(self) -> None:
        r = run_extract(config=self.config, data=fake_pdf("p1", "p2"), pages=[9])
        self.assertTrue(r.success)
        self.assertEqual(labels_of(self._read(r.output_reference)), [])

    def test_remove_every_page_succeeds(self) -> None:
        r = run_remove(config=self.config, data=fake_pdf("p1", "p2"), pages="1-2")
        self.assertTrue(r.success)
        self.assertEqual(labels_of(self._read(r.output_reference)), [])

    def test_extract_huge_range_text(self) -> None:
        r = run_extract(config=self.config, data=fake_pdf("p1", "p2", "p3"), pages="1-20000000")
        self.assertTrue(r.success)
        self.assertEqual(labels_of(self._read(r.output_reference)), ["p1", "p2", "p3"])

    def test_merge_with_very_long_original_filename(self) -> None:
        r = run_merge(config=self.config, sources=[fake_pdf("a")], original_filename="x" * 300 + ".pdf")
        self.assertTrue(r.success, r.message)
        self.assertEqual(labels_of(self._read(r.output_reference)), ["a"])

    def test_remove(self) -> None:
        r = run_remove(config=self.config, data=fake_pdf("p1", "p2", "p3", "p4", "p5"), pages=[2, 4])
        self.assertEqual(r.message, "Pages removed successfully")
        self.assertIn("removed_pages", r.output_reference)
        self.assertEqual(labels_of(self._read(r.output_reference)), ["p1", "p3", "p5"])

    def test_watermark_counts_pages(self) -> None:
        r = run_watermark(config=self.config, data=fake_pdf("p1", "p2"), params=WatermarkParams(text="DRAFT"))
        self.assertEqual(r.message, "Watermark added successfully")
        self.assertEqual(r.meta["pages_stamped"], 2)
        self.assertTrue(self.engine.all_closed)

    def test_text_stamp_bad_page_is_validation_failure(self) -> None:
        r = run_add_text(config=self.config, data=fake_pdf("p1"), params=TextStampParams(text="x", page=2))
        self.assertFalse(r.success)
        self.assertEqual(r.error.code, "PAGE_OUT_OF_RANGE")
        self.assertTrue(self.engine.all_closed)

    def test_single_redact_bad_page_fails(self) -> None:
        redaction = Redaction(page=3, x=0, y=0, width=1, height=1)
        r = run_redact(config=self.config, data=fake_pdf("p1"), redaction=redaction)
        self.assertFalse(r.success)
        self.assertEqual(r.error.kind, ErrorKind.VALIDATION)

    def test_batch_redact_skips_bad_page_and_succeeds(self) -> None:
        payload = json.dumps(
            [
                {"page": 1, "x": 0, "y": 0, "width": 10, "height": 10},
                {"page": 9, "x": 0, "y": 0, "width": 10, "height": 10},
                {"page": 2, "x": 5.5, "y": 5, "width": 1, "height": 1},
            ]
        )
        r = run_redact_multiple(config=self.config, data=fake_pdf("p1", "p2"), redactions=payload)
        self.assertTrue(r.success)
        self.assertEqual(r.message, "Content redacted successfully")
        self.assertEqual(r.meta, {"applied": 2, "skipped": [9]})
        self.assertEqual(len(self.engine.drawn), 2)

    def test_batch_redact_rejects_malformed_payload(self) -> None:
        for payload in ["not json", '{"page": 1}', '[{"page": 1, "x": 0}]', '[{"page": "1", "x": 0, "y": 0, "width": 1, "height": 1}]']:
            with self.subTest(payload=payload):
                r = run_redact_multiple(config=self.config, data=fake_pdf("p1"), redactions=payload)
                self.assertFalse(r.success)
                self.assertEqual(r.error.code, "INVALID_REDACTIONS")
        self.assertEqual(self.engine.drawn, [])

    def test_convert_markdown_and_docx_extensions(self) -> None:
        md = run_convert_markdown(config=self.config, data=fake_pdf("p1"), original_filename="Book.PDF")
        self.assertEqual(md.message, "PDF converted to Markdown")
        self.assertTrue(md.output_reference.startswith("Book_converted_"))
        self.assertTrue(md.output_reference.endswith(".md"))

        with patch("pdf_edit.module._get_paragraph_writer", return_value=FakeParagraphWriter()):
            dx = run_convert_docx(config=self.config, data=fake_pdf("p1"))
        self.assertEqual(dx.message, "PDF converted to DOCX")
        self.assertTrue(dx.output_reference.startswith("converted_"))
        self.assertTrue(dx.output_reference.endswith(".docx"))

    def test_info_has_no_output_reference(self) -> None:
        r = run_info(config=self.config, data=fake_pdf("p1", "p2", "p3"))
        self.assertEqual(r.message, "Pages: 3")
        self.assertIsNone(r.output_reference)
        self.assertFalse(self.out_root.exists())

    def test_engine_failure_is_wrapped_as_processing_error(self) -> None:
        with self.assertLogs("pdf_edit.module", level="ERROR"):
            r = run_merge(config=self.config, sources=[b"garbage"])
        self.assertFalse(r.success)
        self.assertEqual(r.error.kind, ErrorKind.PROCESSING)
        self.assertEqual(r.error.code, "PROCESSING_FAILED")
        self.assertEqual(r.message, "Failed to merge PDFs: not a fake document")
        self.assertEqual(r.error.detail["operation"], "merge")

    def test_results_are_plain_values(self) -> None:
        r = run_info(config=self.config, data=fake_pdf("p1"))
        self.assertIsInstance(r, OperationResult)
        self.assertEqual(r.to_dict()["error"], None)


class TestRetrieve(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.out_root = Path(self._tmp.name)
        self.config = PdfEditConfig(out_root=self.out_root)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip_through_store(self) -> None:
        with patch("pdf_edit.module._get_engine", return_value=FakeEngine()):
            r = run_merge(config=self.config, sources=[fake_pdf("a")])
        got = run_retrieve(config=self.config, filename=r.output_reference)
        self.assertTrue(got.ok)
        self.assertEqual(labels_of(got.data), ["a"])

    def test_failure_kinds(self) -> None:
        cases = [
            ("../etc/passwd", ErrorKind.VALIDATION),
            ("", ErrorKind.VALIDATION),
            ("missing.pdf", ErrorKind.NOT_FOUND),
        ]
        for filename, kind in cases:
            with self.subTest(filename=filename):
                got = run_retrieve(config=self.config, filename=filename)
                self.assertFalse(got.ok)
                self.assertIsNone(got.data)
                self.assertEqual(got.error.kind, kind)


class TestConfig(unittest.TestCase):
    def test_out_root_must_be_path(self) -> None:
        with self.assertRaises(TypeError):
            PdfEditConfig(out_root="uploads")  # type: ignore[arg-type]

    def test_unsupported_engine(self) -> None:
        with self.assertRaises(ValueError):
            _get_engine("nope")  # type: ignore[arg-type]

    def test_default_engine(self) -> None:
        self.assertEqual(_get_engine(EngineName.PYPDFIUM2).backend_id(), "pypdfium2")


if __name__ == "__main__":
    unittest.main()
