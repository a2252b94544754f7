"""
Verification package — the dual-phase pipeline.

Client score (optimistic) -> state machine -> server verification
(authoritative) -> state machine. Only a server-confirmed passing score
grants access. See machine.py for the transition table and session.py for
how async completions are fed back in.
"""
