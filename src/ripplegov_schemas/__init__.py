"""Package data for ripplegov: report JSON Schemas and default manifests."""
