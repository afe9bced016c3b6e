"""
Booru Harvester – Download the top-scored images of an image-board search.

Supports:
  • Crawling any number of search listing pages concurrently
  • Ranking every thumbnail by its embedded score (top 100 kept)
  • Resolving each post's full-size image from its detail page
  • Streaming images into a fresh output directory per run
"""
