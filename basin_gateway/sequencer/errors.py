from __future__ import annotations

from ..errors import UpstreamError


class SequencerError(UpstreamError):
    """A sequenced submission failed; the sequence number was not consumed."""

    code = "sequencer_error"


class SubmissionTimeout(SequencerError):
    code = "submission_timeout"
