AUTH_PATH = '/auth'
EXPENSES_PATH = '/expenses'


class Navigator:
    """Records where a screen asked to go; the web layer turns it into a redirect."""

    def __init__(self):
        self.location = None
        self.replace_history = False

    def replace(self, path: str) -> None:
        self.location = path
        self.replace_history = True

    @property
    def navigated(self) -> bool:
        return self.location is not None
