"""funccover - function-coverage instrumentation for Python sources.

Instrumented programs import ``funccover.runtime`` at startup, so this
package module only carries metadata. The build-time API lives in
``funccover.instrumentation``.
"""

__version__ = "0.1.0"
__author__ = "rainoftime"
__email__ = "rainoftime@gmail.com"
