"""
The `retrievers` package loads the inputs of the controller.

- `config_retriever.py`: The `HubConfigRetriever` class, which reads the YAML
  configuration into typed values with defaults and validates it.
- `forecast_retriever.py`: The `ForecastRetriever` class, which validates the
  forecast table and serves immutable `ForecastWindow` slices.
"""
