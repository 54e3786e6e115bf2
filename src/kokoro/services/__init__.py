"""Application services: safety triage, memory, prompts and orchestration."""
