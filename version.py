"""Project version constants.

These constants are embedded in the botocore user agent so that API calls can
be traced back to a specific build.
"""

ENGINE_NAME: str = "awstools"
ENGINE_VERSION: str = "0.1.0"

# Vega-Lite schema the chart builders target.
CHART_SCHEMA_URL: str = "https://vega.github.io/schema/vega-lite/v5.json"
