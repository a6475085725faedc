"""
aggregation — request-level orchestration.

Modules:
    models             — LocationQuery, EconomicProfile, CityEnvironmentReport
    weather_aggregator — fans out to every upstream and builds the report
    advice_composer    — word-capped improvement suggestions
"""
