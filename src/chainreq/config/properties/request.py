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
"""Request defaults configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from chainreq.core.config import config_properties


@config_properties(prefix="chainreq.request")
@dataclass
class RequestProperties:
    """Defaults applied to every request built by a configured factory (chainreq.request.*).

    ``timeout`` is in seconds; ``0`` disables the timeout.
    """

    timeout: float = 0
    user_agent: str = ""
    ignore_ssl: bool = False
    follow_redirects: bool = True
    base_url: str = ""
    headers: dict = field(default_factory=dict)
