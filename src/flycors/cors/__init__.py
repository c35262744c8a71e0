# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""flycors CORS — policy model, matching, and request evaluation."""

from flycors.cors.matching import OriginPattern, PathPattern
from flycors.cors.policy import CorsPolicy
from flycors.cors.processor import (
    CorsDecision,
    CorsPolicyProvider,
    CorsRequest,
    RejectionReason,
)
from flycors.cors.registry import CorsRegistration, CorsRegistry

__all__ = [
    "CorsDecision",
    "CorsPolicy",
    "CorsPolicyProvider",
    "CorsRegistration",
    "CorsRegistry",
    "CorsRequest",
    "OriginPattern",
    "PathPattern",
    "RejectionReason",
]
