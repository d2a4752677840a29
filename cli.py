from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

import uvicorn
from rich.console import Console

from modcheck.analyzer import Analyzer
from modcheck.config import load_file_config, merge_options
from modcheck.config_modules import NodeConfigModuleLoader
from modcheck.logging_config import setup_logging
from modcheck.report import print_report, render_json

logger = logging.getLogger("modcheck.cli")

err_console = Console(stderr=True)


def _comma_list(value: str) -> List[str]:
	return [part.strip() for part in value.split(",") if part.strip()]


def cmd_analyze(args: argparse.Namespace) -> int:
	setup_logging(args.log_level)
	cwd = os.getcwd()
	options = merge_options(
		load_file_config(cwd),
		{
			"target": args.target,
			"recursive": args.recursive,
			"extensions": args.extensions,
			"ignore": args.ignore,
			"format": args.format,
			"output": args.output,
			"allow_config_execution": True if args.allow_config_exec else None,
		},
	)
	if not options.target:
		err_console.print("[red]Target file or directory not specified (as .analyzerconfig.json or CLI argument)[/red]")
		return 1

	target = os.path.abspath(os.path.join(cwd, options.target))
	if not os.path.exists(target):
		err_console.print(f"[red]File or directory not found: {target}[/red]")
		return 1

	loader = NodeConfigModuleLoader() if options.allow_config_execution else None
	analyzer = Analyzer(cwd, config_loader=loader)
	try:
		if os.path.isdir(target):
			result = analyzer.analyze_directory(
				target,
				extensions=options.extensions,
				ignore=options.ignore,
				recursive=options.recursive,
			)
		else:
			result = analyzer.analyze_file(target)
	except Exception as e:
		logger.debug("Analysis failed", exc_info=True)
		err_console.print(f"[red]Error: {e}[/red]")
		return 1

	if options.output:
		output_path = os.path.abspath(os.path.join(cwd, options.output))
		with open(output_path, "w", encoding="utf-8") as fh:
			if options.format == "json":
				fh.write(render_json(result))
				fh.write("\n")
			else:
				print_report(Console(file=fh, no_color=True, width=120), result, options.format, cwd)
		err_console.print(f"[green]Results saved to: {output_path}[/green]")
	else:
		print_report(Console(), result, options.format, cwd)
	return 0


def cmd_serve(args: argparse.Namespace) -> int:
	setup_logging(args.log_level)
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
	return 0


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="modcheck")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pa = sub.add_parser("analyze", help="Check imports and exports of a file or directory")
	pa.add_argument("target", nargs="?", help="File or directory to analyze")
	pa.add_argument(
		"-r",
		"--recursive",
		action=argparse.BooleanOptionalAction,
		default=None,
		help="Scan subdirectories (default: true)",
	)
	pa.add_argument("-e", "--extensions", type=_comma_list, help="Comma-separated extensions, e.g. .js,.ts")
	pa.add_argument("-i", "--ignore", type=_comma_list, help="Comma-separated ignore globs")
	pa.add_argument("-f", "--format", choices=["json", "table", "summary"], help="Output format (default: table)")
	pa.add_argument("-o", "--output", help="Write the report to this file")
	pa.add_argument(
		"--allow-config-exec",
		action="store_true",
		help="Run build configs with node instead of evaluating them statically",
	)
	pa.add_argument("--log-level", default=None)
	pa.set_defaults(func=cmd_analyze)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.add_argument("--log-level", default=None)
	ps.set_defaults(func=cmd_serve)
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	args = build_parser().parse_args(argv)
	return args.func(args)


if __name__ == "__main__":
	sys.exit(main())
