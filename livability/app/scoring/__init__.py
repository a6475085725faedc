"""
scoring — pure scoring functions and the seismic risk model.

Modules:
    proxy_scores  — deterministic placeholder air / traffic / crime scores
    comfort_index — weighted and unweighted comfort index strategies
    seismic_risk  — USGS event query + time-decayed energy score
"""
