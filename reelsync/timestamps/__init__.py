"""Word timings, their estimation, and their partition into scenes."""
