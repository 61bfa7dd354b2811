import os
from repairdesk import create_app

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    app.logger.info(f"Server running on port {port} ({app.config.get('ENVIRONMENT')})")
    app.run(host='0.0.0.0', port=port, debug=app.config.get('ENVIRONMENT') == 'development')
