"""hdhash - command line front-end for hdhash_core."""
