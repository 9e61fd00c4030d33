"""
Исключения кодека Хаффмана.
"""


class HuffmanError(ValueError):
    pass


class EmptyInput(HuffmanError):
    """Nothing to compress: the input has zero length."""


class MalformedContainer(HuffmanError):
    """The container is inconsistent with its declared layout."""


class TruncatedTree(MalformedContainer):
    pass


class TruncatedPayload(MalformedContainer):
    pass


class InvalidPadding(MalformedContainer):
    pass
