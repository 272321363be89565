import re

# https://solidity.readthedocs.io/en/develop/miscellaneous.html#encoding-of-the-metadata-hash-in-the-bytecode
_METADATA_HASH_RE = re.compile(r"a165627a7a72305820([a-f0-9]{64})0029\Z")

_FILENAME_UNSAFE_RE = re.compile(r"[^a-z0-9]+", re.IGNORECASE)

DEFAULT_EXPORT_FILENAME = "contract.sol"


def extract_metadata_hash(bytecode: str) -> str | None:
    """Return the swarm metadata hash embedded at the end of *bytecode*, if any."""
    match = _METADATA_HASH_RE.search(bytecode)
    return match.group(1) if match else None


def with_hex_prefix(bytecode: str) -> str:
    return f"0x{bytecode}"


def export_filename(name: str | None) -> str:
    """Derive the download filename for a contract's source code."""
    if not name:
        return DEFAULT_EXPORT_FILENAME
    slug = _FILENAME_UNSAFE_RE.sub("-", name)
    slug = re.sub(r"-$", "", slug).lower()
    return slug if slug.endswith(".sol") else f"{slug}.sol"
