"""Campus canteen ordering client core."""
