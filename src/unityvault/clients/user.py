"""
User Profile Client

One profile per wallet at ("user_profile", authority). The program
allocates the profile account itself, so nothing is provisioned here.
"""

from typing import List, Tuple

from ..core.accounts import AccountKind
from ..core.keys import PublicKey, Signer
from ..core.submission import SubmissionReceipt
from ..programs.params import KycData, TwoFactorParams, UserProfileParams
from ..programs.serializer import InstructionKind
from .base import DomainClient


class UserClient(DomainClient):

    def user_profile_address(self, authority: PublicKey) -> PublicKey:
        return self.orchestrator.derive("user_profile", authority)[0]

    async def _invoke(self, kind: InstructionKind, authority: Signer, params) -> SubmissionReceipt:
        profile = self.user_profile_address(authority.public_key)
        instruction = self.orchestrator.instruction(
            kind, params, {"user_profile": profile, "authority": authority.public_key})
        return await self.orchestrator.run(authority, [instruction])

    async def create_user_profile(self, authority: Signer,
                                  params: UserProfileParams) -> Tuple[PublicKey, SubmissionReceipt]:
        receipt = await self._invoke(InstructionKind.CREATE_USER_PROFILE, authority, params)
        return self.user_profile_address(authority.public_key), receipt

    async def update_user_profile(self, authority: Signer, params: UserProfileParams) -> SubmissionReceipt:
        return await self._invoke(InstructionKind.UPDATE_USER_PROFILE, authority, params)

    async def enable_two_factor(self, authority: Signer, params: TwoFactorParams) -> SubmissionReceipt:
        return await self._invoke(InstructionKind.ENABLE_TWO_FACTOR, authority, params)

    async def verify_kyc(self, authority: Signer, kyc: KycData) -> SubmissionReceipt:
        return await self._invoke(InstructionKind.VERIFY_KYC, authority, kyc)

    async def get_user_profile(self, authority: PublicKey) -> bytes:
        """Profile data for the wallet authority."""
        return await self._read(self.user_profile_address(authority), AccountKind.USER_PROFILE)

    async def list_user_profiles(self) -> List[Tuple[PublicKey, bytes]]:
        return await self._list(AccountKind.USER_PROFILE)
