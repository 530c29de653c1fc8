"""Console entry-point for the SNS endpoint example program.

Run with:

.. code-block:: bash

    python -m sns_endpoint.webhook arn:aws:sns:us-east-1:123456789012:orders /sns/orders --port 8080

This delegates to `sns_endpoint.webhook.entry.main()`.
"""

from sns_endpoint.webhook.entry import main

if __name__ == "__main__":
    main()
