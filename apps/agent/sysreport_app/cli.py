"""CLI entrypoints for the SysReport agent, diagnostics, and service registration."""

from __future__ import annotations

import argparse
import json
import signal
import threading
from pathlib import Path

from sysreport_core import (
    StartupError,
    build_agent,
    build_doctor_payload,
    load_config,
    set_run_at_login,
)
from sysreport_core.config import AgentConfig, config_path
from sysreport_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from sysreport_telemetry import CollectionError, DynamicStatus


logger = get_logger("cli")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _config_file(args: argparse.Namespace) -> Path:
    return Path(args.config).expanduser() if args.config else config_path()


def _load(args: argparse.Namespace) -> AgentConfig:
    return load_config(_config_file(args))


def cmd_run(args: argparse.Namespace) -> int:
    cfg = _load(args)
    log_dir = cfg.resolved_log_dir()
    configure_logging(log_dir=log_dir, level=cfg.log_level, keep_files=cfg.keep_log_files, console=True)
    install_crash_hooks(log_dir)

    agent = build_agent(cfg)
    stopped = threading.Event()

    def _on_signal(signum, _frame) -> None:
        logger.info("received %s, shutting down", signal.Signals(signum).name)
        stopped.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    try:
        agent.start()
    except StartupError:
        logger.exception("fatal error during startup")
        return 1

    while not stopped.wait(1.0):
        pass
    agent.stop()
    return 0


def cmd_collect(args: argparse.Namespace) -> int:
    agent = build_agent(_load(args))
    try:
        agent.assembler.set_static_info(agent.collector.collect_static())
        sample = agent.collector.collect_dynamic()
    except CollectionError as exc:
        logger.error("collection failed: %s", exc)
        return 1
    payload = agent.assembler.build(DynamicStatus.from_sample(sample, 0.0, 0.0))
    _print_json(payload.to_dict())
    return 0


def cmd_flush(args: argparse.Namespace) -> int:
    agent = build_agent(_load(args))
    before = len(agent.cache)
    delivered = agent.cache.retry_all(agent.client.send)
    _print_json({"cached_before": before, "delivered": delivered, "remaining": len(agent.cache)})
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg_file = _config_file(args)
    _print_json(build_doctor_payload(load_config(cfg_file), cfg_file))
    return 0


def cmd_install_service(args: argparse.Namespace) -> int:
    written = set_run_at_login(True, _config_file(args), command=args.command_path)
    _print_json({"installed": True, "path": (str(written) if written else None)})
    return 0


def cmd_uninstall_service(args: argparse.Namespace) -> int:
    set_run_at_login(False, _config_file(args))
    _print_json({"installed": False})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sysreport", description="SysReport monitoring agent")
    parser.add_argument("--config", default=None, help="Path to config.json (default: ./config.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run the reporting agent until interrupted")
    run_cmd.set_defaults(func=cmd_run)

    collect_cmd = sub.add_parser("collect", help="Print one report payload without sending it")
    collect_cmd.set_defaults(func=cmd_collect)

    flush_cmd = sub.add_parser("flush", help="Retry cached reports once")
    flush_cmd.set_defaults(func=cmd_flush)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics")
    doctor_cmd.set_defaults(func=cmd_doctor)

    install_cmd = sub.add_parser("install-service", help="Start the agent at boot/login")
    install_cmd.add_argument("--command-path", default=None, help="Executable to register (default: sysreport on PATH)")
    install_cmd.set_defaults(func=cmd_install_service)

    uninstall_cmd = sub.add_parser("uninstall-service", help="Remove the boot/login registration")
    uninstall_cmd.set_defaults(func=cmd_uninstall_service)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "run":
        configure_logging(console=True, level="WARNING")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
