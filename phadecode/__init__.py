"""Public package exports for the Phantasma transaction decoder."""

__version__ = "0.4.0"

from .abi import MethodSignature, ParamSpec, load_abi, load_builtin_method_table, resolve_overload
from .address import Address, AddressKind, convert_address
from .carbon import CarbonDecoded, decode_carbon_payload, decode_carbon_signed_tx
from .carbon_addresses import apply_carbon_address_mode
from .disassembler import disassemble
from .emulator import disassemble_script
from .errors import BoundsError, DecodeError, FormatError
from .events import decode_event
from .output import DecodeOptions, DecodeOutput, render_output
from .rom import decode_rom
from .tx import decode_tx_hash, decode_tx_hex
from .vm import decode_vm_transaction

__all__ = [
    "Address",
    "AddressKind",
    "BoundsError",
    "CarbonDecoded",
    "DecodeError",
    "DecodeOptions",
    "DecodeOutput",
    "FormatError",
    "MethodSignature",
    "ParamSpec",
    "apply_carbon_address_mode",
    "convert_address",
    "decode_carbon_payload",
    "decode_carbon_signed_tx",
    "decode_event",
    "decode_rom",
    "decode_tx_hash",
    "decode_tx_hex",
    "decode_vm_transaction",
    "disassemble",
    "disassemble_script",
    "load_abi",
    "load_builtin_method_table",
    "render_output",
    "resolve_overload",
]
