# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Minimal hostname HTTP service with a multi-listener runner."""

from .errors import BindError, ConfigError, HostnameServiceError, ListenerError, RunError, ServingError

__version__ = '0.1.0'

__all__ = [
    BindError.__name__,
    ConfigError.__name__,
    HostnameServiceError.__name__,
    ListenerError.__name__,
    RunError.__name__,
    ServingError.__name__,
    '__version__',
]
