class LayoutConfigError(ValueError):
    """Raised when the layout is given configuration it cannot use."""


class UserFieldsError(LayoutConfigError):
    """Raised when a user-fields spec contains a pair without a key."""

    def __init__(self, spec: str, pair: str):
        super().__init__(
            f"Malformed user field '{pair}' in '{spec}': expected 'key:value'")
        self.spec = spec
        self.pair = pair
