from __future__ import annotations
from .contracts import SequenceTicket
from .errors import SequencerError, SubmissionTimeout
from .service import TransactionSequencer

__all__ = ["SequenceTicket", "SequencerError", "SubmissionTimeout", "TransactionSequencer"]
