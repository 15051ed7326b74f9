"""Static argument catalog for Carbon module calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

MODULE_NAMES: Dict[int, str] = {
    0: "Governance",
    1: "Token",
    2: "PhantasmaVm",
    3: "Organization",
    4: "Market",
    0xFFFFFFFF: "Internal",
}


@dataclass(frozen=True)
class ArgDef:
    name: str
    type: str
    optional: bool = False


@dataclass(frozen=True)
class CallSignature:
    name: str
    args: Tuple[ArgDef, ...] = ()


def _sig(name: str, *args: Tuple[str, str]) -> CallSignature:
    return CallSignature(name, tuple(ArgDef(arg_name, arg_type) for arg_name, arg_type in args))


_GENESIS = CallSignature(
    "Genesis",
    (
        ArgDef("chain_config", "chain_config"),
        ArgDef("gas_config", "gas_config"),
        ArgDef("nodes", "node_info[]"),
        ArgDef("metadata", "vm_dynamic_struct", optional=True),
        ArgDef("tokens", "token_info[]", optional=True),
        ArgDef("mints", "txmsg_mint_fungible[]", optional=True),
        ArgDef("series", "series_import[]", optional=True),
        ArgDef("stakes", "stake_import[]", optional=True),
        ArgDef("names", "name_import[]", optional=True),
        ArgDef("orgs", "organization_import[]", optional=True),
    ),
)

MODULE_SIGNATURES: Dict[int, Dict[int, CallSignature]] = {
    0: {
        0: _GENESIS,
        1: _sig("RegisterName", ("address", "bytes32"), ("name", "smallstring")),
        2: _sig("SpecialResolution", ("id", "u64"), ("calls", "txmsg_call_multi")),
        3: _sig("SetGasConfig", ("config", "gas_config")),
        4: _sig("SetChainConfig", ("config", "chain_config")),
        5: _sig("SetMetadata", ("metadata", "vm_dynamic_struct")),
        6: _sig("SetNodeConfig", ("nodes", "node_list")),
        7: _sig("GetSpecialResolutionCount"),
        8: _sig("LookupName", ("address", "bytes32")),
        9: _sig("LookupAddress", ("name", "smallstring")),
        10: _sig("SetFeatureLevel", ("version", "u32")),
    },
    1: {
        0: _sig(
            "TransferFungible",
            ("to", "bytes32"),
            ("from", "bytes32"),
            ("token_id", "u64"),
            ("amount", "intx"),
        ),
        1: _sig(
            "TransferNonFungible",
            ("to", "bytes32"),
            ("from", "bytes32"),
            ("token_id", "u64"),
            ("instance_ids", "u64[]"),
        ),
        2: _sig("CreateToken", ("info", "token_info")),
        3: _sig("MintFungible", ("token_id", "u64"), ("to", "bytes32"), ("amount", "intx")),
        4: _sig("BurnFungible", ("token_id", "u64"), ("from", "bytes32"), ("amount", "intx")),
        5: _sig("GetBalance", ("token_id", "u64"), ("address", "bytes32")),
        6: _sig("CreateTokenSeries", ("token_id", "u64"), ("info", "series_info")),
        7: _sig("DeleteTokenSeries", ("token_id", "u64"), ("series_id", "u32")),
        8: _sig(
            "MintNonFungible",
            ("token_id", "u64"),
            ("address", "bytes32"),
            ("tokens", "nft_mint_info[]"),
        ),
        9: _sig(
            "BurnNonFungible",
            ("token_id", "u64"),
            ("address", "bytes32"),
            ("instance_ids", "u64[]"),
        ),
        10: _sig("GetInstances", ("token_id", "u64"), ("address", "bytes32")),
        11: _sig(
            "GetNonFungibleInfo",
            ("token_id", "u64"),
            ("instance_id", "u64"),
            ("get_schemas", "u8"),
        ),
        12: _sig(
            "GetNonFungibleInfoByRomId",
            ("token_id", "u64"),
            ("rom_id", "vm_dynamic_variable"),
            ("get_schemas", "u8"),
        ),
        13: _sig("GetSeriesInfo", ("token_id", "u64"), ("series_id", "u32")),
        14: _sig("GetSeriesInfoByMetaId", ("token_id", "u64"), ("rom_id", "vm_dynamic_variable")),
        15: _sig("GetTokenInfo", ("token_id", "u64")),
        16: _sig("GetTokenInfoBySymbol", ("symbol", "smallstring")),
        17: _sig("GetTokenSupply", ("token_id", "u64")),
        18: _sig("GetSeriesSupply", ("token_id", "u64"), ("series_id", "u32")),
        19: _sig("GetTokenIdBySymbol", ("symbol", "smallstring")),
        20: _sig("GetBalances", ("address", "bytes32")),
        21: _sig(
            "CreateMintedTokenSeries",
            ("token_id", "u64"),
            ("info", "series_info"),
            ("address", "bytes32"),
            ("roms", "bytes[]"),
            ("rams", "bytes[]"),
        ),
        22: _sig("ApplyInflation", ("token_id", "u64")),
        23: _sig("UpdateTokenMetadata", ("token_id", "u64"), ("metadata", "vm_dynamic_struct")),
        24: _sig("GetNextTokenInflation", ("token_id", "u64")),
        25: _sig("SetTokensConfig", ("config", "tokens_config")),
    },
    2: {
        0: _sig("ExecuteScript", ("max_gas", "u64"), ("gas_from", "bytes32"), ("script", "bytes")),
        1: _sig(
            "RegisterTokenContract",
            ("token_id", "u64"),
            ("symbol", "smallstring"),
            ("script", "bytes"),
            ("abi", "bytes"),
        ),
        2: _sig(
            "DeployContract",
            ("from", "bytes32"),
            ("contract_name", "smallstring"),
            ("script", "bytes"),
            ("abi", "bytes"),
        ),
        3: _sig("IsContractDeployed", ("name", "smallstring")),
        4: _sig("SetConfig", ("config", "phantasmavm_config")),
    },
    3: {},
    4: {
        0: _sig(
            "SellToken",
            ("from", "bytes32"),
            ("token_id", "u64"),
            ("instance_id", "u64"),
            ("quote_token_id", "u64"),
            ("price", "intx"),
            ("end_date", "i64"),
        ),
        1: _sig(
            "SellTokenById",
            ("from", "bytes32"),
            ("symbol", "smallstring"),
            ("instance_id", "vm_dynamic_variable"),
            ("quote_symbol", "smallstring"),
            ("price", "intx"),
            ("end_date", "i64"),
        ),
        2: _sig("CancelSale", ("token_id", "u64"), ("instance_id", "u64")),
        3: _sig("CancelSaleById", ("symbol", "smallstring"), ("instance_id", "vm_dynamic_variable")),
        4: _sig("BuyToken", ("from", "bytes32"), ("token_id", "u64"), ("instance_id", "u64")),
        5: _sig(
            "BuyTokenById",
            ("from", "bytes32"),
            ("symbol", "smallstring"),
            ("instance_id", "vm_dynamic_variable"),
        ),
        6: _sig("GetTokenListingCount", ("token_id", "u64")),
        7: _sig("GetTokenListingInfo", ("token_id", "u64"), ("instance_id", "u64")),
        8: _sig(
            "GetTokenListingInfoById",
            ("symbol", "smallstring"),
            ("instance_id", "vm_dynamic_variable"),
        ),
    },
}


def module_name(module_id: int) -> Optional[str]:
    return MODULE_NAMES.get(module_id)


def lookup_signature(module_id: int, method_id: int) -> Optional[CallSignature]:
    return MODULE_SIGNATURES.get(module_id, {}).get(method_id)


__all__ = [
    "ArgDef",
    "CallSignature",
    "MODULE_NAMES",
    "MODULE_SIGNATURES",
    "lookup_signature",
    "module_name",
]
