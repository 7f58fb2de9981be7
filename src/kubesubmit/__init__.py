"""
kubesubmit - submit Spark drivers to Kubernetes.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

__version__ = "1.0.0"
