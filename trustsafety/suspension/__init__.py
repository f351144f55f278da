"""Account suspension state machine and warning levels."""
