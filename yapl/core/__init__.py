"""yapl core: document shape, instruction tape and the execution layers."""
