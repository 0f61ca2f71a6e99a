"""promptweave command line interface."""
