"""
dma-admin command line

使用方法 / Usage:
    dma-admin disable-adapters [name ...]
    dma-admin prune-dms [path]
    dma-admin prune <path> <selector> [prefix=uri ...]
    dma-admin run isolate

Defaults come from DMA_ADMIN_* environment variables or a .env file.
"""
import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from .adapters import disable_adapters, enable_adapters
from .config import load_config
from .errors import AdminError
from .launcher import launch_simulator, restart_agent, start_agent, stop_agent
from .pruner import dms_selector, prune_elements, slcloud_selector
from .schemas import AdapterStatus, AdminConfig, ElementSelector, SigningStatus
from .signing import sign_scripts
from .steps import PIPELINES, run_named_pipeline

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def parse_bindings(items: List[str]) -> Dict[str, str]:
    """'prefix=uri' pairs to a namespace map"""
    bindings = {}
    for item in items:
        prefix, sep, uri = item.partition("=")
        if not sep or not prefix or not uri:
            raise AdminError(f"Namespace binding must look like prefix=uri, got {item!r}")
        bindings[prefix] = uri
    return bindings


def _report_adapters(results: Dict[str, AdapterStatus]):
    for name, status in results.items():
        icon = "⚠️ " if status is AdapterStatus.NOT_FOUND else "✅"
        print(f"{icon} {name}: {status.value}")


def cmd_disable_adapters(args, config: AdminConfig) -> int:
    names = args.names or config.adapter_names
    print(f"🔌 Disabling adapters: {', '.join(names)}")
    _report_adapters(disable_adapters(names, config))
    return 0


def cmd_enable_adapters(args, config: AdminConfig) -> int:
    names = args.names or config.adapter_names
    print(f"🔌 Enabling adapters: {', '.join(names)}")
    _report_adapters(enable_adapters(names, config))
    return 0


def _prune(path: str, selector: ElementSelector) -> int:
    print(f"🧹 Pruning {selector.path} from {path}")
    removed = prune_elements(path, selector)
    print(f"✅ Removed {removed} element(s)")
    return 0


def cmd_prune(args, config: AdminConfig) -> int:
    selector = ElementSelector(path=args.selector, namespaces=parse_bindings(args.bindings))
    return _prune(args.path, selector)


def cmd_prune_dms(args, config: AdminConfig) -> int:
    return _prune(args.path or config.dms_xml_path, dms_selector(config))


def cmd_prune_slcloud(args, config: AdminConfig) -> int:
    return _prune(args.path or config.slcloud_xml_path, slcloud_selector(config))


def cmd_start(args, config: AdminConfig) -> int:
    print(f"🚀 Starting agent: {config.start_script}")
    start_agent(config)
    return 0


def cmd_stop(args, config: AdminConfig) -> int:
    print(f"🛑 Stopping agent: {config.stop_script}")
    stop_agent(config)
    return 0


def cmd_restart(args, config: AdminConfig) -> int:
    print(f"🔄 Restarting agent: {config.restart_script}")
    restart_agent(config)
    return 0


def cmd_simulator(args, config: AdminConfig) -> int:
    path = args.path or config.simulator_path
    print(f"🚀 Launching simulator: {path}")
    launch_simulator(config, path)
    return 0


def cmd_sign(args, config: AdminConfig) -> int:
    print(f"✍️  Signing scripts with certificate matching {config.certificate_subject!r}")
    statuses = sign_scripts(config, args.scripts or None)
    if not statuses:
        print("⚠️  Nothing signed (see log for details)")
    for script, status in statuses.items():
        icon = "✅" if status is SigningStatus.VALID else "⚠️ "
        print(f"{icon} {script}: {status.value}")
    return 0


def cmd_run(args, config: AdminConfig) -> int:
    print(f"\n{'='*70}")
    print(f"  Pipeline: {args.pipeline}")
    print(f"{'='*70}\n")
    final_state = run_named_pipeline(args.pipeline, config)
    print(f"\n✅ Completed: {', '.join(final_state['completed_steps']) or '-'}")
    for error in final_state["errors"]:
        print(f"⚠️  {error}")
    return 0


def cmd_show_config(args, config: AdminConfig) -> int:
    print(json.dumps(config.model_dump(), indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dma-admin",
        description="Lifecycle helpers for a local DataMiner Agent (adapters, config pruning, scripts, signing)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("disable-adapters", help="Disable network adapters")
    p.add_argument("names", nargs="*", help="Adapter names (default: configured adapters)")
    p.set_defaults(func=cmd_disable_adapters)

    p = sub.add_parser("enable-adapters", help="Enable network adapters")
    p.add_argument("names", nargs="*", help="Adapter names (default: configured adapters)")
    p.set_defaults(func=cmd_enable_adapters)

    p = sub.add_parser("prune", help="Remove matching elements from an XML file")
    p.add_argument("path", help="XML file, rewritten in place")
    p.add_argument("selector", help="Element path, e.g. //DMA or .//dms:DMA")
    p.add_argument("bindings", nargs="*", help="Namespace bindings prefix=uri")
    p.set_defaults(func=cmd_prune)

    p = sub.add_parser("prune-dms", help="Remove DMA entries from DMS.xml")
    p.add_argument("path", nargs="?", help="DMS.xml (default: configured path)")
    p.set_defaults(func=cmd_prune_dms)

    p = sub.add_parser("prune-slcloud", help="Remove NATSServer entries from SLCloud.xml")
    p.add_argument("path", nargs="?", help="SLCloud.xml (default: configured path)")
    p.set_defaults(func=cmd_prune_slcloud)

    sub.add_parser("start", help="Launch the start script").set_defaults(func=cmd_start)
    sub.add_parser("stop", help="Launch the stop script").set_defaults(func=cmd_stop)
    sub.add_parser("restart", help="Launch the restart script").set_defaults(func=cmd_restart)

    p = sub.add_parser("simulator", help="Launch the simulator")
    p.add_argument("path", nargs="?", help="Executable (default: configured path)")
    p.set_defaults(func=cmd_simulator)

    p = sub.add_parser("sign", help="Sign scripts with the code-signing certificate")
    p.add_argument("scripts", nargs="*", help="Scripts to sign (default: configured scripts)")
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("run", help="Run a named pipeline")
    p.add_argument("pipeline", choices=sorted(PIPELINES))
    p.set_defaults(func=cmd_run)

    sub.add_parser("show-config", help="Print the effective configuration").set_defaults(func=cmd_show_config)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    args = build_parser().parse_args(argv)
    try:
        config = load_config()
        return args.func(args, config)
    except Exception as e:
        print(f"\n❌ ERROR: {e}", file=sys.stderr)
        logging.getLogger("dma_admin").debug("Command failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
