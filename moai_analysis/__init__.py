"""
Statistical analysis package for the road moai transport article.

Modules:
    config            – shared constants (paths, thresholds, palettes, export)
    measurements      – measurement normalisation and present-value aggregates
    geo_matcher       – Haversine distance, nearest-candidate matching, fusion
    data_loader       – spreadsheet / CSV ingestion with structural checks
    synthetic         – illustrative sample datasets (injected RNG)
    ratio_analysis    – base/shoulder width ratio, Welch's t-test (Fig. 2)
    center_of_mass    – matched road moai, CoM estimate (Fig. 3)
    regression        – OLS trend lines with confidence bands
    angle_size        – base angle vs size metric (Fig. 5)
    transport_failure – expected and observed quarry distances (Fig. 11, 12)
    size_distance     – size by transport phase (Fig. 13)
    captions          – figure caption text
    plots             – all visualisation routines
    run_all           – orchestrator: run every analysis + save report
"""
