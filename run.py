"""
Travelbook admin platform entry point.
"""
import os
import sys
import logging

from travelbook import create_app
from travelbook.utils.exceptions import ConfigurationError

logger = logging.getLogger('travelbook.run')

config_name = os.getenv('FLASK_ENV', 'production')

try:
    app = create_app(config_name)
except ConfigurationError as e:
    logger.critical('Refusing to start: %s', e.message)
    sys.exit(1)

logger.info('Routes: %d', len(list(app.url_map.iter_rules())))

if __name__ == '__main__':
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=os.getenv('FLASK_ENV') == 'development'
    )
