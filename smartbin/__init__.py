"""SmartBin monitor: client-side telemetry reconciliation engine."""
