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

"""ASGI type aliases shared by the web package.

Any ASGI 3 callable can be served; the aliases follow Starlette's
definitions so Starlette applications and bare ASGI callables both fit.
"""

from starlette.types import ASGIApp, Message, Receive, Scope, Send

Application = ASGIApp

__all__ = [
    'Application',
    'Message',
    'Receive',
    'Scope',
    'Send',
]
