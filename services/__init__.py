"""
STARSIGHT Services Package

Image Analysis (services.image_analysis)
----------------------------------------
- ImageAnalyzer: background, star detection, photometry, metrics,
  focus analysis and quality assessment for a single frame
- measure_fwhm / measure_snr: per-star measurements on cropped patches
- calculate_trend: frame-to-frame comparison of metrics
"""
