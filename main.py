from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from emfdev_core.core import (
    DeviceConfig,
    DocumentSummary,
    EmfDevice,
    EmfDocument,
    LTY_DASHED,
    load_device_config,
)
from emfdev_core.core.config import device_config_from_mapping
from emfdev_core.render import render_svg
from emfdev_core.text import FixedPitchMetricsProvider


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="emfdev")
    parser.add_argument("--verbose", action="store_true", help="Log every record written.")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render-svg", help="Convert a simple SVG scene to EMF.")
    render.add_argument("input", type=Path)
    render.add_argument("output", help="Output path, or - for stdout.")
    _add_device_args(render)

    demo = sub.add_parser("demo", help="Write a sample EMF exercising every primitive.")
    demo.add_argument("output", help="Output path, or - for stdout.")
    _add_device_args(demo)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = _resolve_config(args)
    metrics = FixedPitchMetricsProvider() if args.fixed_metrics else None
    target = sys.stdout.buffer if args.output == "-" else Path(args.output)

    if args.command == "render-svg":
        with EmfDevice(config, metrics=metrics) as device:
            document = device.start(target)
            render_svg(args.input, document)
            summary = device.close()
        _print_summary(summary, args.output)
        return 0

    if args.command == "demo":
        with EmfDevice(config, metrics=metrics) as device:
            document = device.start(target)
            _draw_demo(document, device)
            summary = device.close()
        _print_summary(summary, args.output)
        return 0

    raise RuntimeError(f"unsupported command: {args.command}")


def _add_device_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, default=None, help="TOML file with a [device] table.")
    parser.add_argument("--width", type=float, default=None, help="Page width in inches.")
    parser.add_argument("--height", type=float, default=None, help="Page height in inches.")
    parser.add_argument("--pointsize", type=float, default=None)
    parser.add_argument("--family", default=None)
    parser.add_argument("--bg", default=None)
    parser.add_argument("--buffered", action="store_true", default=None, help="Buffer output and write once.")
    parser.add_argument("--fixed-metrics", action="store_true", help="Use fixed-pitch font metrics.")


def _resolve_config(args: argparse.Namespace) -> DeviceConfig:
    overrides = {
        "width_in": args.width,
        "height_in": args.height,
        "pointsize": args.pointsize,
        "family": args.family,
        "bg": args.bg,
        "buffered": args.buffered,
    }
    if args.output == "-":
        overrides["buffered"] = True
    if args.config is not None:
        return load_device_config(args.config, **overrides)
    return device_config_from_mapping({k: v for k, v in overrides.items() if v is not None})


def _draw_demo(document: EmfDocument, device: EmfDevice) -> None:
    gc = device.default_gc()
    w, h = device.width, device.height
    margin = w // 10
    document.rect(margin, margin, w - margin, h - margin, gc.with_changes(fill=(240, 240, 240, 255)))
    document.line(margin, margin, w - margin, h - margin, gc.with_changes(lwd=2.0))
    document.line(margin, h - margin, w - margin, margin, gc.with_changes(lty=LTY_DASHED, col=(200, 0, 0, 255)))
    document.circle(w / 2, h / 2, w / 8, gc.with_changes(fill=(0, 90, 200, 255)))
    document.polygon(
        [w * 0.2, w * 0.3, w * 0.25],
        [h * 0.2, h * 0.2, h * 0.35],
        gc.with_changes(fill=(0, 160, 60, 255), ljoin="mitre"),
    )
    document.polyline([w * 0.6, w * 0.7, w * 0.8], [h * 0.2, h * 0.3, h * 0.2], gc.with_changes(lend="butt"))
    document.text(w / 2, h - margin * 1.5, "emfdev sample", 0.0, 0.5, gc.with_changes(fontface=2))


def _print_summary(summary: DocumentSummary, output: str) -> None:
    stream = sys.stderr if output == "-" else sys.stdout
    print(
        f"wrote {output}: bytes={summary.n_bytes} records={summary.n_records} handles={summary.n_handles}",
        file=stream,
    )


if __name__ == "__main__":
    raise SystemExit(main())
