"""CLI for campaign-engine: config, plan and run commands."""

import argparse
import asyncio
import json
import random
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console

from .config import Config, load_config
from .engine import CampaignEvent, CampaignOrchestrator, EventKind, QueryPlanner
from .logging_config import setup_logging
from .models import CampaignResult, CampaignStatus, DeviceClass
from .sources import default_sources, supplementary_sources
from .visualizer import render_attempt, render_config, render_plan, render_result

MOBILE_DEVICE = "Pixel 7"

EXIT_CODES = {
	CampaignStatus.COMPLETED: 0,
	CampaignStatus.PARTIALLY_COMPLETED: 2,
	CampaignStatus.TIMED_OUT: 2,
	CampaignStatus.ABORTED: 3,
}

console = Console()


def exit_code_for(result: CampaignResult) -> int:
	return EXIT_CODES[result.status]


def _load_cookies(storage_state: Optional[Path]) -> dict[str, str]:
	"""Cookie name -> value from a playwright storage state file."""
	if storage_state is None or not storage_state.exists():
		return {}
	try:
		with open(storage_state) as f:
			data = json.load(f)
	except (json.JSONDecodeError, IOError) as e:
		console.print(f"[yellow]Could not read storage state {storage_state}: {e}[/yellow]")
		return {}
	return {c["name"]: c["value"] for c in data.get("cookies", []) if "name" in c and "value" in c}


def _build_planner(config: Config, seed: Optional[int]) -> QueryPlanner:
	rng = random.Random(seed)
	return QueryPlanner(
		plan_size=config.plan_size,
		seed=seed,
		supplementary=supplementary_sources(config.locale, rng),
	)


def cmd_config(args: argparse.Namespace) -> int:
	"""Print the effective configuration."""
	config = load_config()
	render_config(config.to_dict(), console=console)
	toml_path = config.config_dir / "config.toml"
	state = "found" if toml_path.exists() else "not found"
	console.print(f"[dim]config.toml: {toml_path} ({state})[/dim]")
	return 0


def cmd_plan(args: argparse.Namespace) -> int:
	"""Build and print a query plan without executing it."""
	config = load_config()
	setup_logging(args.log_level, device_class=args.device)
	device = DeviceClass(args.device)
	planner = _build_planner(config, args.seed)
	sources = default_sources(config.locale, config.fallback_locale, random.Random(args.seed))

	queries = asyncio.run(planner.plan(sources, size=args.size))
	flattened = [text for query in queries for text in query.flatten(device)]
	render_plan(flattened, title=f"{device.value.title()} Query Plan", console=console)
	return 0


async def _run_campaign(args: argparse.Namespace, config: Config) -> CampaignResult:
	from playwright.async_api import async_playwright

	from .driver import PlaywrightDriver
	from .progress_source import HttpProgressSource

	device = DeviceClass(args.device)
	progress_source = HttpProgressSource(
		args.progress_url,
		counters_path=args.counters_path,
		cookies=_load_cookies(args.storage_state),
		timeout=config.progress_timeout,
	)

	async def on_event(event: CampaignEvent) -> None:
		if event.kind == EventKind.ATTEMPT:
			render_attempt(event.payload, console=console)
		elif event.kind == EventKind.TRANSITION:
			console.print(f"[bold]{event.payload['from']} -> {event.payload['to']}[/bold]")

	async with async_playwright() as p:
		browser = await p.chromium.launch(headless=not args.headed)
		context_options: dict = {}
		if device == DeviceClass.MOBILE:
			context_options.update(p.devices[MOBILE_DEVICE])
		if args.storage_state and args.storage_state.exists():
			context_options["storage_state"] = str(args.storage_state)

		context = await browser.new_context(**context_options)
		page = await context.new_page()
		await page.goto(config.home_url)

		orchestrator = CampaignOrchestrator(
			driver=PlaywrightDriver(context, page),
			progress_source=progress_source,
			device_class=device,
			sources=default_sources(config.locale, config.fallback_locale, random.Random(args.seed)),
			config=config,
			planner=_build_planner(config, args.seed),
			on_event=on_event,
		)
		try:
			return await orchestrator.run()
		finally:
			await browser.close()


def cmd_run(args: argparse.Namespace) -> int:
	"""Run one campaign and render its result."""
	config = load_config()
	setup_logging(args.log_level, log_dir=config.log_dir, device_class=args.device)

	result = asyncio.run(_run_campaign(args, config))
	render_result(result, console=console)
	return exit_code_for(result)


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="campaign-engine",
		description="Run quota-driven interaction campaigns",
	)
	parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING or ERROR")
	subparsers = parser.add_subparsers(dest="command")

	# config
	config_parser = subparsers.add_parser("config", help="Show effective configuration")
	config_parser.set_defaults(func=cmd_config)

	# plan
	plan_parser = subparsers.add_parser("plan", help="Build and print a query plan")
	plan_parser.add_argument("--device", choices=[d.value for d in DeviceClass], default=DeviceClass.DESKTOP.value)
	plan_parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible plan")
	plan_parser.add_argument("--size", type=int, default=None, help="Number of queries (default: plan_size)")
	plan_parser.set_defaults(func=cmd_plan)

	# run
	run_parser = subparsers.add_parser("run", help="Run one campaign")
	run_parser.add_argument("--device", choices=[d.value for d in DeviceClass], default=DeviceClass.DESKTOP.value)
	run_parser.add_argument("--progress-url", type=str, required=True, help="Counters JSON endpoint")
	run_parser.add_argument("--counters-path", type=str, default="", help="Dotted path to the counters object")
	run_parser.add_argument("--storage-state", type=Path, default=None, help="Playwright storage state file")
	run_parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible plan")
	run_parser.add_argument("--headed", action="store_true", help="Show the browser window")
	run_parser.set_defaults(func=cmd_run)

	return parser


def main(argv: Optional[list[str]] = None) -> None:
	"""CLI entry point."""
	load_dotenv()
	parser = build_parser()
	args = parser.parse_args(argv)

	if not args.command:
		parser.print_help()
		sys.exit(1)

	sys.exit(args.func(args))
