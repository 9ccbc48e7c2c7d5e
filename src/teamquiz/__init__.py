"""Team quiz API: weekly questions, scoring and team leaderboards."""
