from treeops.core.hasher import DEFAULT_ALGORITHM, supported_algorithms

ALGORITHM_ALIASES = {
    "md5": "md5",
    "sha1": "sha1",
    "sha-1": "sha1",
    "sha256": "sha256",
    "sha-256": "sha256",
    "sha512": "sha512",
    "sha-512": "sha512",
    "xxh64": "xxh64",
    "xxh3": "xxh3_64",
    "xxh3_64": "xxh3_64",
    "xxh3_128": "xxh3_128",
}

ALGORITHM_CHOICES = list(ALGORITHM_ALIASES.keys())

ALGORITHM_HELP_TEXT = (
    "Hash algorithm for content fingerprints:\n"
    "  md5, sha1, sha256, sha512 : cryptographic digests\n"
    "  xxh64, xxh3_64, xxh3_128  : fast non-cryptographic xxHash\n"
    f"Default: {DEFAULT_ALGORITHM}. Supported: {', '.join(supported_algorithms())}\n"
)

ACCESS_CHOICES = ["read", "write", "execute"]

EPILOG_TEXT = """
Examples:
  Describe a path (type, size, permissions, timestamps)
  %(prog)s stat ~/notes.txt

  List every .jpg below a directory
  %(prog)s walk ~/Pictures --pattern '\\.jpg$'

  Find duplicates with a fast hash and print them as JSON
  %(prog)s --json dupes ~/Downloads --algorithm xxh3

  Same as above + move duplicates to trash without confirmation (for scripts)
  %(prog)s dupes ~/Downloads --keep-one --force

  Copy a large file with bounded memory
  %(prog)s copy big.iso /mnt/backup/big.iso

  Watch a directory tree for 30 seconds
  %(prog)s watch ~/project --recursive --timeout 30
"""
