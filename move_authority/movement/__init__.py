"""Server-authoritative movement validation.

Pure code: locomotion state machine, per-state physics rules, the validation
pipeline and the accept/drop/revert policy. No redis, no clock, no I/O.
"""
