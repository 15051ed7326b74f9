"""Command-line front end shared by ``pha_decode.py`` and the console script."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from . import __version__
from .abi import MethodTable, build_method_table, load_abi, load_builtin_method_table, merge_method_tables
from .address import convert_address
from .emulator import LATEST_PROTOCOL_VERSION
from .errors import DecodeError
from .events import decode_event
from .hexutil import hex_to_bytes
from .output import (
    CARBON_ADDRESS_ALIASES,
    CARBON_DETAIL_MODES,
    OUTPUT_FORMATS,
    ROM_MODE_ALIASES,
    VM_DETAIL_ALIASES,
    DecodeOptions,
    DecodeOutput,
    build_output_dict,
    render_output,
)
from .rom import decode_rom
from .rpc import RpcClient, RpcError
from .tx import decode_tx_hash, decode_tx_hex

logger = logging.getLogger(__name__)

COMMANDS = ("tx", "event", "rom", "address")

USAGE = """\
pha_decode.py <txHex>
       pha_decode.py tx --hex <txHex>
       pha_decode.py tx --hash <txHash> --rpc <url>
       pha_decode.py event --hex <eventHex> [--kind <kind>]
       pha_decode.py rom --hex <romHex> [--symbol <symbol>] [--token-id <id>] [--rom-format <mode>]
       pha_decode.py address --bytes32 <hex> | --pha <address>"""


def _choice(label: str, aliases: Dict[str, str]) -> Callable[[str], str]:
    def convert(value: str) -> str:
        try:
            return aliases[value.strip().lower()]
        except KeyError:
            raise argparse.ArgumentTypeError(f"unknown {label}: {value}") from None

    return convert


def _protocol(value: str) -> int:
    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"invalid protocol version: {value}")
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pha_decode.py",
        usage=USAGE,
        description="Decode Phantasma transactions, events, NFT ROM blobs and addresses.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Command (tx, event, rom, address) or a bare transaction hex string",
    )
    parser.add_argument("-v", "--version", action="version", version=__version__)
    parser.add_argument("--hex", help="Hex input for tx, event or rom mode")
    parser.add_argument("--hash", "--tx", dest="hash", help="Transaction hash to fetch over RPC")
    parser.add_argument("--rpc", help="RPC endpoint used by --hash and --resolve")
    parser.add_argument("--abi", type=Path, help="ABI JSON file or directory")
    parser.add_argument("--kind", help="Event kind hint (name or numeric id)")
    parser.add_argument("--symbol", help="ROM symbol hint, e.g. CROWN")
    parser.add_argument("--token-id", "--id", dest="token_id", help="ROM token id hint")
    parser.add_argument(
        "--rom-format",
        "--rom-mode",
        dest="rom_mode",
        type=_choice("rom format", ROM_MODE_ALIASES),
        default="auto",
        help="ROM parser: auto|legacy|crown (default: auto)",
    )
    parser.add_argument(
        "--format",
        type=_choice("format", {name: name for name in OUTPUT_FORMATS}),
        default="pretty",
        help="Output format: json|pretty (default: pretty)",
    )
    parser.add_argument(
        "--vm-detail",
        type=_choice("vm detail", VM_DETAIL_ALIASES),
        default="all",
        help="VM output detail: all|calls|ops|none (default: all)",
    )
    parser.add_argument(
        "--carbon-detail",
        type=_choice("carbon detail", {name: name for name in CARBON_DETAIL_MODES}),
        default="call",
        help="Carbon output detail: all|call|msg|none (default: call)",
    )
    parser.add_argument(
        "--carbon-addresses",
        type=_choice("carbon address mode", CARBON_ADDRESS_ALIASES),
        default="bytes32",
        help="Carbon address output: bytes32|pha (default: bytes32)",
    )
    parser.add_argument(
        "--protocol",
        "--protocol-version",
        dest="protocol",
        type=_protocol,
        default=LATEST_PROTOCOL_VERSION,
        help=f"Protocol version for interop arity checks (default: {LATEST_PROTOCOL_VERSION})",
    )
    parser.add_argument("--resolve", action="store_true", help="Merge contract ABIs fetched over RPC")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--bytes32", "--carbon-address", dest="bytes32", help="Carbon bytes32 address input")
    parser.add_argument("--pha", "--pha-address", dest="pha", help="Chain address text input")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.target in COMMANDS:
        args.command = args.target
    elif args.target is not None:
        if args.hex:
            parser.error(f"unexpected argument: {args.target}")
        args.command = "tx"
        args.hex = args.target
    else:
        args.command = "tx"

    if args.command == "tx":
        if not args.hex and not args.hash:
            raise SystemExit("tx mode requires --hex <txHex> or --hash <txHash>")
        if args.hex and args.hash:
            raise SystemExit("use only one of --hex or --hash")
    elif args.command in ("event", "rom"):
        if not args.hex:
            raise SystemExit(f"{args.command} mode requires --hex <{args.command}Hex>")
    elif args.command == "address":
        if not args.bytes32 and not args.pha:
            raise SystemExit("address mode requires --bytes32 <hex> or --pha <address>")
        if args.bytes32 and args.pha:
            raise SystemExit("address mode accepts only one of --bytes32 or --pha")
    return args


def options_from_args(args: argparse.Namespace) -> DecodeOptions:
    return DecodeOptions(
        format=args.format,
        vm_detail=args.vm_detail,
        carbon_detail=args.carbon_detail,
        carbon_addresses=args.carbon_addresses,
        protocol_version=args.protocol,
        rom_mode=args.rom_mode,
        rpc_url=args.rpc,
        abi_path=str(args.abi) if args.abi else None,
        resolve=args.resolve,
        verbose=args.verbose,
    )


def ignored_flag_warnings(args: argparse.Namespace) -> List[str]:
    """Warn about flags that have no effect in the selected command."""

    if args.command == "tx":
        return []
    checks = [
        ("--abi", args.abi is not None),
        ("--resolve", args.resolve),
        ("--vm-detail", args.vm_detail != "all"),
        ("--carbon-detail", args.carbon_detail != "call"),
        ("--carbon-addresses", args.carbon_addresses != "bytes32"),
    ]
    if args.command in ("rom", "address"):
        checks += [("--rpc", args.rpc is not None), ("--kind", args.kind is not None)]
    if args.command == "address":
        checks += [("--symbol", args.symbol is not None), ("--token-id", args.token_id is not None)]
    return [f"{flag} is ignored for {args.command} mode" for flag, used in checks if used]


def load_method_table(options: DecodeOptions, warnings: List[str]) -> MethodTable:
    """Builtin signatures, then ``--abi`` and ``--resolve`` overrides."""

    table = load_builtin_method_table()
    if options.abi_path:
        loaded = load_abi(Path(options.abi_path))
        merge_method_tables(
            table, loaded.methods, warnings, "abi", warn_on_duplicate=False, replace_same_arity=True
        )
        warnings.extend(loaded.warnings)
    if options.resolve:
        if not options.rpc_url:
            raise SystemExit("RPC url is required for --resolve")
        contracts = RpcClient(options.rpc_url).get_contracts("main", with_methods=True)
        fetched = build_method_table(contracts, "rpc")
        merge_method_tables(
            table, fetched.methods, warnings, "rpc", warn_on_duplicate=False, replace_same_arity=True
        )
        warnings.extend(fetched.warnings)
    return table


def run_event(args: argparse.Namespace, options: DecodeOptions, warnings: List[str]) -> DecodeOutput:
    output = DecodeOutput(source="event-hex", input=args.hex, format=options.format, warnings=warnings)
    try:
        data = hex_to_bytes(args.hex)
        output.input = data.hex()
        output.event, event_warnings = decode_event(data, args.kind)
    except DecodeError as exc:
        output.errors.append(str(exc))
        return output
    output.warnings.extend(event_warnings)
    return output


def run_rom(args: argparse.Namespace, options: DecodeOptions, warnings: List[str]) -> DecodeOutput:
    output = DecodeOutput(source="rom-hex", input=args.hex, format=options.format, warnings=warnings)
    try:
        rom, rom_warnings = decode_rom(
            hex_to_bytes(args.hex),
            mode=options.rom_mode,
            symbol=args.symbol,
            token_id=args.token_id,
        )
    except DecodeError as exc:
        output.errors.append(str(exc))
        return output
    output.input = rom.raw_hex
    output.rom = rom
    output.warnings.extend(rom_warnings)
    return output


def run_address(args: argparse.Namespace, options: DecodeOptions, warnings: List[str]) -> DecodeOutput:
    output = DecodeOutput(
        source="address-convert",
        input=args.bytes32 or args.pha,
        format=options.format,
        warnings=warnings,
    )
    try:
        output.address = convert_address(bytes32=args.bytes32, text=args.pha)
    except DecodeError as exc:
        output.errors.append(str(exc))
    return output


def run_tx(args: argparse.Namespace, options: DecodeOptions, warnings: List[str]) -> DecodeOutput:
    table = load_method_table(options, warnings)
    if args.hash:
        if not options.rpc_url:
            raise SystemExit("RPC url is required for --hash")
        output = decode_tx_hash(
            args.hash,
            RpcClient(options.rpc_url),
            table,
            options.protocol_version,
            format=options.format,
        )
    else:
        output = decode_tx_hex(args.hex, table, options.protocol_version, format=options.format)
    output.warnings.extend(warnings)
    return output


_RUNNERS = {"tx": run_tx, "event": run_event, "rom": run_rom, "address": run_address}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    options = options_from_args(args)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    warnings = ignored_flag_warnings(args)
    try:
        output = _RUNNERS[args.command](args, options, warnings)
    except (DecodeError, RpcError, OSError) as exc:
        logger.debug("aborting %s command", args.command, exc_info=True)
        raise SystemExit(str(exc)) from exc

    print(render_output(build_output_dict(output, options)))
    return 1 if output.errors else 0


__all__ = ["build_parser", "ignored_flag_warnings", "load_method_table", "main", "parse_args"]
