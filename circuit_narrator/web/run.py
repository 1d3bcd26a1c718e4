"""Launcher script for the Circuit Narrator web API."""

import os
from circuit_narrator.web.app import create_app


def main():
    """Run the Flask development server."""
    app = create_app()
    print("\n" + "="*60)
    print("Circuit Narrator API")
    print("="*60)

    # Security: Only bind to localhost when debug mode is enabled
    # to prevent exposing the interactive debugger to the network
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    host = '127.0.0.1' if debug_mode else os.environ.get('FLASK_HOST', '0.0.0.0')
    port = int(os.environ.get('FLASK_PORT', '3000'))

    if debug_mode:
        print("\n⚠️  Running in DEBUG mode - server restricted to localhost only")
    print(f"Starting server at http://{host}:{port}")
    print("Press Ctrl+C to stop the server")

    # the reloader would load the models twice
    app.run(debug=debug_mode, host=host, port=port, use_reloader=False, threaded=True)


if __name__ == '__main__':
    main()
