"""
JSON-RPC over HTTP

Maps the executor capability set onto the standard ledger JSON-RPC
methods. One httpx.AsyncClient is shared by every call, which makes a
single endpoint object safe to use from many concurrent operations.

Error mapping:
- transport failures, HTTP errors, node-health codes -> RemoteUnavailable
- "Blockhash not found"                              -> StaleFreshnessToken
- any other JSON-RPC error                           -> Rejected
"""

import base64
import itertools
import json
import logging
from typing import Any, List, Optional, Tuple

import httpx

from ..core.accounts import AccountInfo
from ..core.keys import PublicKey
from ..errors import Rejected, RemoteUnavailable, StaleFreshnessToken
from .endpoint import ConfirmationStatus, FreshnessToken, RpcEndpoint, SignatureStatus

logger = logging.getLogger(__name__)

# Server-side conditions that say nothing about the request itself
NODE_UNAVAILABLE_CODES = {
    -32603,     # internal error
    -32005,     # node is unhealthy / behind
    -32004,     # block not available
    -32014,     # block status not yet available
    -32016,     # minimum context slot not reached
}


def _is_stale_blockhash(message: str, data: Any) -> bool:
    if isinstance(data, dict) and data.get("err") == "BlockhashNotFound":
        return True
    return "blockhash not found" in message.lower()


def _parse_account(value: dict) -> AccountInfo:
    encoded, encoding = value["data"]
    if encoding != "base64":
        raise RemoteUnavailable(f"Unexpected account encoding {encoding!r}")
    return AccountInfo(
        lamports=value["lamports"],
        data=base64.b64decode(encoded),
        owner=PublicKey.from_string(value["owner"]),
        executable=value.get("executable", False),
        rent_epoch=value.get("rentEpoch", 0),
    )


class HttpRpcEndpoint(RpcEndpoint):
    """Remote executor reached over JSON-RPC 2.0."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logger.debug("-> %s %s", method, params)

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"{method} failed: {e}") from e

        if response.status_code != 200:
            raise RemoteUnavailable(f"{method} failed: HTTP {response.status_code}")

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise RemoteUnavailable(f"{method} returned invalid JSON") from e

        error = body.get("error")
        if error is not None:
            code = error.get("code")
            message = error.get("message", "")
            data = error.get("data")
            logger.debug("<- %s error %s: %s", method, code, message)
            if _is_stale_blockhash(message, data):
                raise StaleFreshnessToken(message)
            if code in NODE_UNAVAILABLE_CODES:
                raise RemoteUnavailable(f"{method} failed: {message}")
            logs = data.get("logs") if isinstance(data, dict) else None
            raise Rejected(f"{method} rejected: {message}", logs=logs)

        return body.get("result")

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> FreshnessToken:
        result = await self._call("getLatestBlockhash", [{"commitment": commitment}])
        value = result["value"]
        return FreshnessToken(value["blockhash"], value["lastValidBlockHeight"])

    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        return await self._call("getMinimumBalanceForRentExemption", [space])

    async def get_account_info(self, address: PublicKey,
                               commitment: str = "confirmed") -> Optional[AccountInfo]:
        result = await self._call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": commitment}],
        )
        value = result["value"]
        return _parse_account(value) if value is not None else None

    async def get_program_accounts(self, program_id: PublicKey,
                                   commitment: str = "confirmed") -> List[Tuple[PublicKey, AccountInfo]]:
        result = await self._call(
            "getProgramAccounts",
            [str(program_id), {"encoding": "base64", "commitment": commitment}],
        )
        return [(PublicKey.from_string(item["pubkey"]), _parse_account(item["account"])) for item in result]

    async def send_transaction(self, raw: bytes) -> str:
        encoded = base64.b64encode(raw).decode()
        return await self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": "confirmed"}],
        )

    async def confirm_transaction(self, signature: str, commitment: str = "confirmed") -> SignatureStatus:
        result = await self._call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        value = result["value"][0]
        if value is None:
            return SignatureStatus(signature, ConfirmationStatus.PENDING)

        error = value.get("err")
        status = value.get("confirmationStatus") or "processed"
        return SignatureStatus(
            signature=signature,
            status=ConfirmationStatus(status),
            slot=value.get("slot"),
            error=json.dumps(error) if error is not None else None,
        )
