"""Lightning wallet port and the ``bark`` CLI adapter.

The CLI prints log lines around a single JSON object, and those log lines may
carry braces of their own, so output is scanned for the first decodable object
that has the keys an operation expects. Everything that knows about the CLI's
text format lives in this module.
"""

import asyncio
import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from gymgrub.payments.errors import (
    InvoiceCreationFailed,
    SettlementCheckTransient,
    WalletUnavailable,
)

logger = logging.getLogger(__name__)

INVOICE_KEYS = ("invoice", "payment_request")
STATUS_KEYS = ("status", "paid", "settled", "preimage_revealed_at")

_SENTINEL_MARKERS = ("placeholder", "mock")
_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class WalletInvoice:
    """A freshly minted BOLT11 invoice."""

    invoice: str
    payment_hash: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InvoiceStatus:
    """Status fields reported for one invoice.

    The CLI's schema differs between versions, so any single settlement
    signal is enough.
    """

    raw: dict[str, Any]

    @property
    def is_settled(self) -> bool:
        return (
            self.raw.get("status") == "paid"
            or self.raw.get("paid") is True
            or self.raw.get("settled") is True
            or self.raw.get("preimage_revealed_at") is not None
        )


class WalletPort(Protocol):
    async def create_invoice(self, sats: int, description: str) -> WalletInvoice: ...

    async def run_maintenance(self) -> None: ...

    async def check_invoice_status(self, invoice: str) -> InvoiceStatus: ...


def extract_json_object(output: str, keys: Iterable[str] = ()) -> dict[str, Any] | None:
    """Return the first JSON object in noisy CLI output, or None.

    With ``keys``, only an object holding at least one of them is accepted,
    so debug text such as ``Config { network: Signet }`` is skipped.
    """
    wanted = tuple(keys)
    start = output.find("{")
    while start != -1:
        try:
            data, end = _decoder.raw_decode(output, start)
        except json.JSONDecodeError:
            start = output.find("{", start + 1)
            continue
        if isinstance(data, dict) and (not wanted or any(key in data for key in wanted)):
            return data
        start = output.find("{", end)
    return None


def is_sentinel_invoice(invoice: str) -> bool:
    lowered = invoice.lower()
    return any(marker in lowered for marker in _SENTINEL_MARKERS)


class BarkWallet:
    """Runs the ``bark`` CLI as a subprocess for each operation."""

    def __init__(self, binary: str = "bark", timeout: float = 10.0) -> None:
        self.binary = binary
        self.timeout = timeout

    async def _run(self, *args: str) -> tuple[int, str]:
        """Run ``bark <args>`` and return (exit code, combined stdout/stderr).

        Raises:
            WalletUnavailable: If the binary cannot be found or executed.
            asyncio.TimeoutError: If the process outlives ``self.timeout``.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError:
            raise WalletUnavailable(self.binary, "Wallet binary not found") from None
        except PermissionError:
            raise WalletUnavailable(self.binary, "Wallet binary is not executable") from None

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("%s %s timed out after %.1fs", self.binary, args[0], self.timeout)
            raise
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        return proc.returncode or 0, output

    async def create_invoice(self, sats: int, description: str) -> WalletInvoice:
        """Mint an invoice for ``sats`` satoshis.

        Raises:
            WalletUnavailable: The CLI is missing.
            InvoiceCreationFailed: The CLI failed, timed out, or printed no real invoice.
        """
        try:
            # "--" ends option parsing so a memo like "--help" stays positional
            returncode, output = await self._run("invoice", "--json", "--", str(sats), description)
        except asyncio.TimeoutError:
            raise InvoiceCreationFailed(f"Wallet did not answer within {self.timeout:.0f}s") from None

        if returncode != 0:
            raise InvoiceCreationFailed(f"Wallet exited with status {returncode}", output)

        data = extract_json_object(output, INVOICE_KEYS)
        if data is None:
            raise InvoiceCreationFailed("No invoice JSON in wallet output", output)

        invoice = data.get("invoice") or data.get("payment_request")
        if not invoice or not isinstance(invoice, str):
            raise InvoiceCreationFailed("Wallet output has no invoice", output)
        if is_sentinel_invoice(invoice):
            raise InvoiceCreationFailed("Wallet returned a placeholder invoice", output)

        return WalletInvoice(invoice=invoice, payment_hash=data.get("payment_hash"), raw=data)

    async def run_maintenance(self) -> None:
        """Claim pending incoming payments. Output is ignored."""
        returncode, output = await self._run("maintain", "--quiet")
        if returncode != 0:
            logger.debug("bark maintain exited with %s: %s", returncode, output.strip())

    async def check_invoice_status(self, invoice: str) -> InvoiceStatus:
        """Query the wallet for the status of a single invoice.

        Raises:
            WalletUnavailable: The CLI is missing.
            SettlementCheckTransient: The CLI failed, timed out, or printed no JSON.
        """
        try:
            returncode, output = await self._run("lightning", "status", invoice, "--quiet")
        except asyncio.TimeoutError:
            raise SettlementCheckTransient(f"Wallet did not answer within {self.timeout:.0f}s") from None

        if returncode != 0:
            raise SettlementCheckTransient(f"Wallet exited with status {returncode}: {output.strip()}")

        data = extract_json_object(output, STATUS_KEYS)
        if data is None:
            raise SettlementCheckTransient(f"No status JSON in wallet output: {output.strip()}")
        return InvoiceStatus(raw=data)
