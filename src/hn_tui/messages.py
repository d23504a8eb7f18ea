from textual.message import Message

from .datamodels import PreviewState


class PreviewChanged(Message):
    """The shared preview slot moved to a new state."""
    def __init__(self, state: PreviewState) -> None:
        self.state = state
        super().__init__()
