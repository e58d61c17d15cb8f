# mindmetrics/config.py

# Physiological plausibility window for RR intervals (ms, exclusive bounds)
RR_MIN_MS = 250.0
RR_MAX_MS = 2000.0

# Extraction fails below this many accepted intervals.
MIN_INTERVALS = 2

# Callers should reject shorter recordings before scoring them.
RECOMMENDED_MIN_INTERVALS = 10

# Frequency bands in cycles per beat, (low, high] with unit sample spacing
VLF_BAND = (0.003, 0.04)
LF_BAND = (0.04, 0.15)
HF_BAND = (0.15, 0.4)

# Sample entropy: embedding dimension and tolerance as a fraction of SDRR
SAMPEN_M = 2
SAMPEN_R_FACTOR = 0.2

# Largest scale used by the Higuchi estimator (capped at N // 2).
HIGUCHI_KMAX = 10
