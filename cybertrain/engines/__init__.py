"""Domain engines: timed challenges and module sequencing."""
