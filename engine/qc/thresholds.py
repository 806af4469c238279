"""
Default QC thresholds for realized regions and bounces.
"""
QC_THRESHOLDS = {
    "peak_dbfs_max": -0.1,  # Max sample peak before the bounce counts as hot
    "clip_ratio_max": 0.001,  # Max fraction of samples at or past full scale
    "rms_dbfs_min": -70.0,  # Below this the region is effectively silent
    "non_finite_max": 0,  # NaN/Inf samples allowed
}
