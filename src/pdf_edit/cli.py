from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from .artifacts import serialize_operation_result, write_operation_result_json
from .contracts import (
    OperationError,
    OperationResult,
    PdfEditConfig,
    Redaction,
    SignatureParams,
    TextStampParams,
    WatermarkParams,
)
from .errors import ValidationError
from .logging_setup import setup_logging
from .module import (
    run_add_signature,
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

DEFAULT_OUT_ROOT = Path("uploads")


def _add_input(p: argparse.ArgumentParser) -> None:
    p.add_argument("input", type=Path, help="Input PDF file.")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf-edit",
        description="Merge, split, stamp, redact and convert PDF documents into a flat artifact directory.",
    )
    p.add_argument(
        "--out-root",
        type=Path,
        default=None,
        help="Artifact directory. Default: $PDF_EDIT_OUT_ROOT, else ./uploads.",
    )
    p.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level. Default: $LOG_LEVEL, else INFO.",
    )
    p.add_argument("--result-json", type=Path, default=None, help="Also write the result JSON to this file.")

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("merge", help="Concatenate PDFs in the given order.")
    s.add_argument("inputs", nargs="+", type=Path, help="Input PDF files.")

    s = sub.add_parser("split", help="Split into single pages or page-range groups.")
    _add_input(s)
    s.add_argument("--groups", default=None, help='Optional groups like "1-3;4,6". Default: one file per page.')

    s = sub.add_parser("extract", help="Copy selected pages into a new PDF.")
    _add_input(s)
    s.add_argument("--pages", required=True, help='Pages like "1,3,5-7".')

    s = sub.add_parser("remove", help="Delete selected pages.")
    _add_input(s)
    s.add_argument("--pages", required=True, help='Pages like "2,4".')

    s = sub.add_parser("watermark", help="Stamp rotated gray text on every page.")
    _add_input(s)
    s.add_argument("--text", required=True)
    s.add_argument("--x", type=float, default=None, help="Default: page center.")
    s.add_argument("--y", type=float, default=None, help="Default: page center.")
    s.add_argument("--rotation", type=float, default=45.0, help="Degrees, counter-clockwise.")
    s.add_argument("--opacity", type=float, default=0.3)

    s = sub.add_parser("add-text", help="Place text on one page.")
    _add_input(s)
    s.add_argument("--text", required=True)
    s.add_argument("--x", type=float, default=50.0)
    s.add_argument("--y", type=float, default=750.0)
    s.add_argument("--page", type=int, default=1)
    s.add_argument("--font-size", type=float, default=12.0)
    s.add_argument("--font", default="HELVETICA")
    s.add_argument("--color", default="#000000")

    s = sub.add_parser("add-signature", help="Place an image on one page.")
    _add_input(s)
    s.add_argument("--image", required=True, type=Path)
    s.add_argument("--x", type=float, default=400.0)
    s.add_argument("--y", type=float, default=100.0)
    s.add_argument("--page", type=int, default=1)
    s.add_argument("--scale", type=float, default=0.3)

    s = sub.add_parser("redact", help="Cover one rectangle in black.")
    _add_input(s)
    s.add_argument("--page", type=int, required=True)
    s.add_argument("--x", type=float, required=True)
    s.add_argument("--y", type=float, required=True)
    s.add_argument("--width", type=float, required=True)
    s.add_argument("--height", type=float, required=True)

    s = sub.add_parser("redact-multiple", help="Cover several rectangles given as JSON.")
    _add_input(s)
    s.add_argument(
        "--redactions",
        required=True,
        help='JSON list like \'[{"page":1,"x":0,"y":0,"width":10,"height":10}]\', or @file.json.',
    )

    s = sub.add_parser("to-markdown", help="Convert extracted text to Markdown.")
    _add_input(s)

    s = sub.add_parser("to-docx", help="Convert extracted text to DOCX.")
    _add_input(s)

    s = sub.add_parser("info", help="Report the page count.")
    _add_input(s)

    s = sub.add_parser("retrieve", help="Read a stored artifact by name.")
    s.add_argument("filename")
    s.add_argument("--dest", type=Path, default=None, help="Write the artifact bytes here.")

    return p


def _out_root(args: argparse.Namespace) -> Path:
    if args.out_root is not None:
        return args.out_root
    env = os.environ.get("PDF_EDIT_OUT_ROOT")
    return Path(env) if env else DEFAULT_OUT_ROOT


def _read_redactions(value: str) -> str:
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def _dispatch(args: argparse.Namespace, config: PdfEditConfig) -> OperationResult:
    cmd = args.command

    if cmd == "merge":
        sources = [f.read_bytes() for f in args.inputs]
        return run_merge(config=config, sources=sources, original_filename=args.inputs[0].name)

    data = args.input.read_bytes()
    name = args.input.name

    if cmd == "split":
        return run_split(config=config, data=data, groups=args.groups, original_filename=name)
    if cmd == "extract":
        return run_extract(config=config, data=data, pages=args.pages, original_filename=name)
    if cmd == "remove":
        return run_remove(config=config, data=data, pages=args.pages, original_filename=name)
    if cmd == "watermark":
        params = WatermarkParams(
            text=args.text, x=args.x, y=args.y, rotation_deg=args.rotation, opacity=args.opacity
        )
        return run_watermark(config=config, data=data, params=params, original_filename=name)
    if cmd == "add-text":
        params = TextStampParams(
            text=args.text,
            x=args.x,
            y=args.y,
            page=args.page,
            font_size=args.font_size,
            font_name=args.font,
            color_hex=args.color,
        )
        return run_add_text(config=config, data=data, params=params, original_filename=name)
    if cmd == "add-signature":
        params = SignatureParams(
            image_data=args.image.read_bytes(), x=args.x, y=args.y, page=args.page, scale=args.scale
        )
        return run_add_signature(config=config, data=data, params=params, original_filename=name)
    if cmd == "redact":
        redaction = Redaction(page=args.page, x=args.x, y=args.y, width=args.width, height=args.height)
        return run_redact(config=config, data=data, redaction=redaction, original_filename=name)
    if cmd == "redact-multiple":
        return run_redact_multiple(
            config=config, data=data, redactions=_read_redactions(args.redactions), original_filename=name
        )
    if cmd == "to-markdown":
        return run_convert_markdown(config=config, data=data, original_filename=name)
    if cmd == "to-docx":
        return run_convert_docx(config=config, data=data, original_filename=name)
    if cmd == "info":
        return run_info(config=config, data=data)

    raise ValueError(f"Unknown command: {cmd}")


def _retrieve(args: argparse.Namespace, config: PdfEditConfig) -> int:
    result = run_retrieve(config=config, filename=args.filename)
    payload = {
        "ok": result.ok,
        "filename": result.filename,
        "size": len(result.data) if result.data is not None else None,
        "error": None,
    }
    if result.error is not None:
        payload["error"] = {
            "kind": result.error.kind.value,
            "code": result.error.code,
            "message": result.error.message,
            "detail": result.error.detail,
        }
    if result.ok and args.dest is not None:
        args.dest.parent.mkdir(parents=True, exist_ok=True)
        args.dest.write_bytes(result.data)

    print(json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2))
    return 0 if result.ok else 2


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    config = PdfEditConfig(out_root=_out_root(args))

    if args.command == "retrieve":
        return _retrieve(args, config)

    try:
        result = _dispatch(args, config)
    except ValidationError as e:
        # Parameter objects validate on construction, before any run_* call.
        error = OperationError(kind=e.kind, code=e.code, message=e.message, detail=e.detail)
        result = OperationResult(success=False, message=e.message, error=error)
    except OSError as e:
        result = OperationResult(success=False, message=f"Cannot read input: {e}")

    print(serialize_operation_result(result), end="")
    if args.result_json is not None:
        write_operation_result_json(result=result, out_file=args.result_json)

    return 0 if result.success else 2


if __name__ == "__main__":
    raise SystemExit(main())
