class CflError(Exception):
    """Base class for CFL-specific errors."""


# Header related
class FormatMismatch(CflError):
    pass


# Bounds/consistency
class CorruptArchive(CflError):
    pass


class CorruptBlock(CorruptArchive):
    pass


class UnsupportedCodec(CflError):
    pass


# Encode-side validation
class InvalidInput(CflError, ValueError):
    pass
