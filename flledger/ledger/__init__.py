from .participants import ParticipantRegistry
from .rounds import RoundController
from .updates import UpdateLedger

__all__ = ["ParticipantRegistry", "RoundController", "UpdateLedger"]
