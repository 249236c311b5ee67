# Magic and header
RGSSAD_MAGIC = b"RGSSAD"            # 6 bytes checked; bytes 6-7 are "\0" + version
HEADER_SIZE = 8
RGSSAD_VERSION = 1

# Keystream
INITIAL_KEY = 0xDEADCAFE
KEY_MASK = 0xFFFFFFFF
KEY_MULTIPLIER = 7
KEY_INCREMENT = 3

# Directory record fields
LENGTH_FIELD_SIZE = 4

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_ENCODING = "utf-8"

# Extraction permission bits (rwxr-xr-x / rw-r--r--)
DIR_MODE = 0o755
FILE_MODE = 0o644
