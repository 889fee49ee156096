"""mail/ -- Outbound email delivery for InternTrack.

Layer rule: mail/ imports only core/, stdlib and third-party libraries.
auth/ receives a sender through its constructor and never imports mail/.
"""
