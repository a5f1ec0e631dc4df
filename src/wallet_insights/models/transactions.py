"""
Raw transaction records as reported by the Helius enhanced transactions API.
These are parsed leniently: missing or malformed fields fall back to neutral
defaults so a single odd record never breaks a batch.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
WSOL_MINT = "So11111111111111111111111111111111111111112"


def to_float(value: Any) -> float:
    """Convert a loosely-typed numeric field, returning 0.0 when it cannot be parsed."""
    if value is None:
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


def utc_datetime(timestamp: Any) -> Optional[datetime]:
    """Convert a Unix timestamp in seconds to an aware UTC datetime, or None when out of range."""
    try:
        return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@dataclass(frozen=True)
class TokenTransfer:
    """A single SPL token movement."""
    mint: str
    from_user_account: Optional[str] = None
    to_user_account: Optional[str] = None
    token_amount: float = 0.0
    raw_amount: Optional[str] = None
    decimals: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenTransfer":
        raw = _as_dict(data.get('rawTokenAmount'))
        return cls(
            mint=str(data.get('mint') or ''),
            from_user_account=data.get('fromUserAccount'),
            to_user_account=data.get('toUserAccount'),
            token_amount=to_float(data.get('tokenAmount')),
            raw_amount=raw.get('tokenAmount'),
            decimals=raw.get('decimals')
        )


@dataclass(frozen=True)
class NativeTransfer:
    """A lamport movement between two accounts."""
    from_user_account: Optional[str]
    to_user_account: Optional[str]
    amount: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NativeTransfer":
        return cls(
            from_user_account=data.get('fromUserAccount'),
            to_user_account=data.get('toUserAccount'),
            amount=int(to_float(data.get('amount')))
        )

    @property
    def amount_sol(self) -> float:
        return self.amount / LAMPORTS_PER_SOL


@dataclass(frozen=True)
class NativeLeg:
    """Native SOL side of a swap event."""
    account: Optional[str]
    amount: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional["NativeLeg"]:
        if not isinstance(data, dict):
            return None
        return cls(account=data.get('account'), amount=to_float(data.get('amount')))

    @property
    def amount_sol(self) -> float:
        return self.amount / LAMPORTS_PER_SOL


@dataclass(frozen=True)
class TokenLeg:
    """Token side of a swap event."""
    mint: str
    user_account: Optional[str]
    amount: float
    decimals: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenLeg":
        raw = _as_dict(data.get('rawTokenAmount'))
        amount = data.get('amount')
        if amount is None:
            amount = raw.get('tokenAmount')
        return cls(
            mint=str(data.get('mint') or ''),
            user_account=data.get('userAccount'),
            amount=to_float(amount),
            decimals=raw.get('decimals')
        )


@dataclass(frozen=True)
class ProgramInfo:
    source: str = ''
    account: str = ''
    name: str = ''
    instruction_name: str = ''

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ProgramInfo"]:
        if not isinstance(data, dict):
            return None
        return cls(
            source=str(data.get('source') or ''),
            account=str(data.get('account') or ''),
            name=str(data.get('programName') or data.get('name') or ''),
            instruction_name=str(data.get('instructionName') or '')
        )


@dataclass(frozen=True)
class SwapEvent:
    """Structured swap event with input and output legs."""
    native_input: Optional[NativeLeg] = None
    native_output: Optional[NativeLeg] = None
    token_inputs: List[TokenLeg] = field(default_factory=list)
    token_outputs: List[TokenLeg] = field(default_factory=list)
    program_info: Optional[ProgramInfo] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SwapEvent"]:
        if not isinstance(data, dict):
            return None
        return cls(
            native_input=NativeLeg.from_dict(data.get('nativeInput')),
            native_output=NativeLeg.from_dict(data.get('nativeOutput')),
            token_inputs=[TokenLeg.from_dict(t) for t in _as_list(data.get('tokenInputs')) if isinstance(t, dict)],
            token_outputs=[TokenLeg.from_dict(t) for t in _as_list(data.get('tokenOutputs')) if isinstance(t, dict)],
            program_info=ProgramInfo.from_dict(data.get('programInfo'))
        )


@dataclass(frozen=True)
class RawTransaction:
    """One blockchain transaction as reported by the indexer."""
    signature: str
    timestamp: int
    description: str = ''
    type: str = ''
    source: str = ''
    fee: int = 0
    token_transfers: List[TokenTransfer] = field(default_factory=list)
    native_transfers: List[NativeTransfer] = field(default_factory=list)
    swap_event: Optional[SwapEvent] = None
    transaction_error: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawTransaction":
        """Build a transaction from a Helius enhanced transaction payload."""
        events = _as_dict(data.get('events'))
        return cls(
            signature=str(data.get('signature') or ''),
            timestamp=int(to_float(data.get('timestamp'))),
            description=str(data.get('description') or ''),
            type=str(data.get('type') or ''),
            source=str(data.get('source') or ''),
            fee=int(to_float(data.get('fee'))),
            token_transfers=[
                TokenTransfer.from_dict(t) for t in _as_list(data.get('tokenTransfers')) if isinstance(t, dict)
            ],
            native_transfers=[
                NativeTransfer.from_dict(t) for t in _as_list(data.get('nativeTransfers')) if isinstance(t, dict)
            ],
            swap_event=SwapEvent.from_dict(events.get('swap')),
            transaction_error=data.get('transactionError')
        )

    @property
    def failed(self) -> bool:
        return bool(self.transaction_error)


def parse_transactions(payload: List[Any]) -> List[RawTransaction]:
    """Parse a provider payload, skipping records that are not transaction objects."""
    transactions = []
    for item in payload:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object transaction record: {item!r}")
            continue
        try:
            transactions.append(RawTransaction.from_dict(item))
        except (TypeError, ValueError, AttributeError, OverflowError) as e:
            logger.warning(f"Failed to parse transaction {item.get('signature')}: {e}")
            continue
    return transactions
