"""Core download machinery: config, throttling, transfer, staging, orchestration."""
