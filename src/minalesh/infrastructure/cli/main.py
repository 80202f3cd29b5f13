import logging

import click

from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import settings
from minalesh.infrastructure.cli.checkout_commands import checkout_create_intent
from minalesh.infrastructure.cli.common import fail
from minalesh.infrastructure.cli.coupon_commands import coupon_add, coupon_list
from minalesh.infrastructure.cli.inventory_commands import (
    inventory_extend,
    inventory_release,
    inventory_set,
    inventory_show,
    inventory_sweep,
)
from minalesh.infrastructure.cli.order_commands import (
    order_cancel,
    order_show,
    order_status,
)
from minalesh.infrastructure.cli.payment_commands import payment_capture, payment_status
from minalesh.infrastructure.cli.product_commands import (
    product_add,
    product_add_variant,
    product_list,
)
from minalesh.infrastructure.cli.rate_commands import rate_shipping, rate_tax


@click.group()
def cli() -> None:
    """Minalesh - checkout, payment and inventory reservation core"""
    try:
        log_level = settings().log_level
    except DomainException as exc:
        raise fail(exc)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage stock and inventory holds."""


@cli.group()
def checkout() -> None:
    """Turn carts into pending orders."""


@cli.group()
def payment() -> None:
    """Capture payments."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def coupon() -> None:
    """Manage coupons."""


@cli.group()
def rate() -> None:
    """Manage shipping and tax rates."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_add_variant)
product.add_command(product_list)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
inventory.add_command(inventory_sweep)
inventory.add_command(inventory_release)
inventory.add_command(inventory_extend)
checkout.add_command(checkout_create_intent)
payment.add_command(payment_capture)
payment.add_command(payment_status)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_cancel)
coupon.add_command(coupon_add)
coupon.add_command(coupon_list)
rate.add_command(rate_shipping)
rate.add_command(rate_tax)
