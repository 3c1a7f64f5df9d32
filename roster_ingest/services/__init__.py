"""Pipeline services: partitioning, reporting, staging and orchestration."""
