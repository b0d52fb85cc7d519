"""DSM Clustering API — FastAPI service over dsm_kernel."""
