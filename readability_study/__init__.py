"""Storage backend for the readability/typography study: study content and participant telemetry."""
