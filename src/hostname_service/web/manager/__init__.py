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

"""Run multiple HTTP listeners in a single process."""

from ._listener import ListenerSpec, RunResult, parse_bind_address
from ._loop import run_loop
from ._ports import bind_socket, format_address
from ._runner import DEFAULT_SHUTDOWN_TIMEOUT, ListenerRunner
from ._server import ListenerServer, create_server
from .signals import SignalHandler

__all__ = [
    'DEFAULT_SHUTDOWN_TIMEOUT',
    ListenerRunner.__name__,
    ListenerServer.__name__,
    ListenerSpec.__name__,
    RunResult.__name__,
    SignalHandler.__name__,
    bind_socket.__name__,
    create_server.__name__,
    format_address.__name__,
    parse_bind_address.__name__,
    run_loop.__name__,
]
