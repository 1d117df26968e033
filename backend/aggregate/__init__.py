"""
Per-region statistics and choropleth bucketing.
"""
