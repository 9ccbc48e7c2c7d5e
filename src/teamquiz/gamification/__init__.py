"""Score ledger, streaks and achievements."""
