"""Admission control for the sjoelen score tracker."""

__version__ = "0.1.0"
