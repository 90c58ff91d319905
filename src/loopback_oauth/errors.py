class ListenerStartupError(RuntimeError):
    """Raised when the callback listener cannot be bound or configured.

    The underlying exception (usually an ``OSError`` from ``bind``) is chained
    as ``__cause__``.
    """

    def __init__(self, redirect_uri: str, reason: str):
        super().__init__(f"Cannot listen on {redirect_uri}: {reason}")
        self.redirect_uri = redirect_uri
        self.reason = reason
