class EndToken:
    """Marks the end of a sample stream on an asyncio queue."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "<END>"

    def __reduce__(self) -> str:
        # Copies and unpickled instances resolve to the module singleton.
        return "_END"

_END = EndToken()
