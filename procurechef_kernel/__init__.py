"""ProcureChef kernel: logging, typed errors, clock, domain entities and database plumbing."""
