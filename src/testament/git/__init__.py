"""Git repository inspection for testaments."""
