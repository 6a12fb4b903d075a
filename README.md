# pedidomendez

This package provides business services for a small delivery shop:

- a product and category catalogue,
- user administration,
- orders that move through a fixed set of states.

Every order change is pushed to connected clients through an in-memory
notification hub.

The package has no storage of its own. Each service is built on a repository
object that you supply, such as a database layer or an in-memory stand-in.

## Installation

```
pip install pedidomendez
```

To run the tests:

```
pip install "pedidomendez[test]"
pytest
```

## Modules

### `pedidomendez.message`

- `MessageType` names the kinds of message:
  - `order_status_update`
  - `new_order_available`
  - `category_update`
  - `product_update`
  - `chat_message`
- `Message` holds a type and a payload that is already JSON text.
  `Message.to_json()` places that payload into the serialised message as it is.
- The payload dataclasses are `OrderStatusUpdatePayload`,
  `NewOrderAvailablePayload`, `CategoryUpdatePayload` and
  `ProductUpdatePayload`.
- `marshal_payload(value)` turns a dataclass, dict, list or plain value into
  compact JSON text.
  - It leaves out optional fields that are empty.
  - If the value cannot be serialised, it logs the error and returns `None`.

### `pedidomendez.hub`

`Hub` keeps registered `Client`s, indexed both by user id and by role. Its
methods are:

- `register` and `unregister`;
- `send_to_user`, which waits for room in the client's queue;
- `send_to_role` and `broadcast`, which drop and close any client whose queue
  is full;
- `role_counts`.

Each `Client` has a bounded queue of 256 messages by default.
`Client.drain()` removes all waiting messages and returns them, oldest first.
`HubInterface` is the protocol that the order service expects from a hub.

### `pedidomendez.notifications`

`NotificationService` has the following methods:

- `send_to_client`
- `send_to_repartidores`
- `send_to_specific_repartidor`
- `send_to_admin`
- `register_device_token`

Each method only writes a log record.

### `pedidomendez.catalog`

`CategoryService` and `ProductService` pass calls through to their
repository:

- `create`
- `get_by_id`
- `get_all`
- `get_active`
- `update`
- `delete`

`CategoryService` also has `get_with_product_count`.

The module also defines these error classes:

- `CategoryNotFoundError`
- `CategoryNameExistsError`
- `ProductNotFoundError`
- `ProductNameExistsError`

### `pedidomendez.users`

`UserService` covers the plain operations and adds the following.

`get_users_with_pagination(page, page_size, role_filter)` returns a
`PaginatedUsers`.
- A page below 1 becomes 1.
- A page size outside 1 to 100 becomes 10.

The administrator operations are:

- `create_user_admin`: refuses an e-mail address that is already in use
  (`EmailAlreadyExistsError`).
- `update_user_admin`
- `activate_user`
- `deactivate_user`: an administrator cannot be deactivated
  (`CannotDeactivateAdminError`), and nobody can deactivate themselves
  (`CannotDeactivateSelfError`).
- `delete_user_admin`

Users that cannot be found raise `UserNotFoundError`. `UserRole` has the
values `ADMIN`, `REPARTIDOR` and `CLIENT`.

### `pedidomendez.orders`

`OrderService` handles the order workflow.

**`create_order(order, items)`**

1. Checks that the client exists and has the `CLIENT` role.
2. Prices each item from its product. A missing product raises
   `ProductNotFoundError`, and an inactive product raises
   `ProductInactiveError`.
3. Sets the order time and the status. The status is `PENDING`, or
   `PENDING_OUT_OF_HOURS` if the `within_business_hours` callable you pass
   says so. Without that callable, every order counts as in hours.
4. Stores the order and its items.
5. Announces the order to couriers and administrators.

**`update_order_status`, `assign_repartidor` and `set_estimated_arrival_time`**

These methods check the current state of the order, update it, and send
notifications to the client, the couriers and the administrators.

**Queries**

- `get_order_by_id`
- `get_orders_by_client_id`
- `get_orders_by_repartidor_id`
- `get_pending_orders`
- `get_orders_by_status`
- `get_all_orders`
- `find_nearby_orders`

## Order states

`OrderStatus` has these values:

- `PENDING`
- `PENDING_OUT_OF_HOURS`
- `CONFIRMED`
- `ASSIGNED`
- `IN_TRANSIT`
- `DELIVERED`
- `CANCELLED`

**Clients** may cancel their own orders while the orders are pending.

**Couriers** (`REPARTIDOR`):
- may confirm any pending order, which assigns the order to them if no
  courier has it yet;
- if they are the assigned courier, may move an order from `ASSIGNED` to
  `IN_TRANSIT`, and from `IN_TRANSIT` to `DELIVERED`.

**Administrators**:
- may move a pending order to `CONFIRMED` or `CANCELLED`;
- may move a confirmed order to `ASSIGNED` or `CANCELLED`.

Any other change raises `InvalidTransitionError`.

`assign_repartidor` has its own rules:
- It accepts only pending or confirmed orders that have no courier yet.
  Otherwise it raises `InvalidOrderStatusError` or `OrderAlreadyAssignedError`.
- The person assigned must be a courier or an administrator
  (`InvalidRoleError`).

`set_estimated_arrival_time` accepts only orders that are `CONFIRMED`,
`ASSIGNED` or `IN_TRANSIT`.

## Example

```python
from pedidomendez.hub import Hub, Client
from pedidomendez.message import Message, MessageType, marshal_payload

hub = Hub()
driver = Client(user_id="driver-1", role="REPARTIDOR")
hub.register(driver)

hub.send_to_role(
    "REPARTIDOR",
    Message(MessageType.NEW_ORDER_AVAILABLE, marshal_payload({"order_id": "abc"})),
)
print(driver.drain())
print(hub.role_counts())   # {'REPARTIDOR': 1}
```

## What the package does not do

- **No storage.** Repositories must be supplied by the caller.
- **No network service.** There is no HTTP API, no WebSocket endpoint and no
  token validation. The hub only queues messages in memory, and you read them
  with `Client.drain()`.
- **No push delivery.** `NotificationService` logs what it would send and
  delivers nothing to devices.
- **No command-line program.**