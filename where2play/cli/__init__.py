"""Command-line tools for Where2Play.

- ``python -m where2play.cli city|artist|recommend|similar|regions``: run
  one search against the live providers and print the result.
"""
