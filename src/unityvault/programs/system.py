"""
System Program Instructions

The System Program owns every plain-balance account and is the only
program that can bring a new account into existence:
- CreateAccount: fund, allocate and assign an account in one step
- Transfer: move lamports, implicitly creating a plain-balance holder

Instruction data is a little-endian u32 variant index followed by the
fields, which is exactly what a Borsh struct with a leading U32 produces.
"""

from borsh_construct import CStruct, U32, U64, U8

from ..core.accounts import AccountMeta
from ..core.keys import PublicKey
from ..core.transactions import Instruction

SYSTEM_PROGRAM_ID = PublicKey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = PublicKey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
SYSVAR_RENT_ID = PublicKey.from_string("SysvarRent111111111111111111111111111111111")

# Packed sizes of SPL Token state
MINT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165

CREATE_ACCOUNT = 0
TRANSFER = 2

CreateAccountLayout = CStruct(
    "instruction" / U32,
    "lamports" / U64,
    "space" / U64,
    "owner" / U8[32],
)
TransferLayout = CStruct(
    "instruction" / U32,
    "lamports" / U64,
)


def create_account(payer: PublicKey, new_account: PublicKey, lamports: int,
                   space: int, owner: PublicKey, new_account_signs: bool = True) -> Instruction:
    """
    Create an account funded by payer, sized to space, owned by owner.

    A keyed account co-signs its own creation. A derived address has no
    key, so its meta is left unsigned and the owning program vouches for it.
    """
    data = CreateAccountLayout.build({
        "instruction": CREATE_ACCOUNT,
        "lamports": lamports,
        "space": space,
        "owner": list(owner.raw),
    })
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta.writable(payer, is_signer=True),
            AccountMeta.writable(new_account, is_signer=new_account_signs),
        ),
        data=data,
    )


def transfer(from_pubkey: PublicKey, to_pubkey: PublicKey, lamports: int) -> Instruction:
    """Create a simple lamport transfer instruction."""
    data = TransferLayout.build({"instruction": TRANSFER, "lamports": lamports})
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta.writable(from_pubkey, is_signer=True),
            AccountMeta.writable(to_pubkey),
        ),
        data=data,
    )


def decode_system_instruction(data: bytes) -> dict:
    """
    Parse System Program instruction data into a plain dict.

    Only CreateAccount and Transfer are understood.
    """
    if len(data) < 4:
        raise ValueError("System instruction data too short")
    index = int.from_bytes(data[:4], 'little')
    if index == CREATE_ACCOUNT:
        parsed = CreateAccountLayout.parse(data)
        return {
            "type": "create_account",
            "lamports": parsed.lamports,
            "space": parsed.space,
            "owner": PublicKey(bytes(parsed.owner)),
        }
    if index == TRANSFER:
        parsed = TransferLayout.parse(data)
        return {"type": "transfer", "lamports": parsed.lamports}
    raise ValueError(f"Unsupported system instruction {index}")
