"""buddyflow: snapshot and progress engine for assigned learning flows."""
