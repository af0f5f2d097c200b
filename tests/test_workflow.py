from datetime import date
from decimal import Decimal

import pytest

from boxoffice.checkout import CompleteCartWorkflow, StepResponse, Workflow, WorkflowStep
from boxoffice.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from boxoffice.models import Cart, GeneralAccessAllocation, Order, OrderLineItem, Ticket

JAZZ_DATE = date(2025, 7, 1)
OPEN_MIC_DATE = date(2025, 7, 5)


class RecordingStep(WorkflowStep):
    def __init__(self, name, log, fail=None):
        self.name = name
        self.log = log
        self.fail = fail

    def invoke(self, context):
        if self.fail:
            raise self.fail
        self.log.append(("invoke", self.name))
        return StepResponse(self.name.upper(), f"undo-{self.name}")

    def compensate(self, undo_token):
        self.log.append(("compensate", undo_token))


class FailingStep(WorkflowStep):
    name = "send_confirmation"

    def __init__(self, error):
        self.error = error

    def invoke(self, context):
        raise self.error


class TestWorkflow:
    def test_results_are_collected_by_step_name(self):
        log = []
        context = Workflow("demo", [RecordingStep("a", log), RecordingStep("b", log)]).run({})
        assert context == {"a": "A", "b": "B"}
        assert log == [("invoke", "a"), ("invoke", "b")]

    def test_completed_steps_are_compensated_in_reverse(self):
        log = []
        steps = [
            RecordingStep("a", log),
            RecordingStep("b", log),
            RecordingStep("c", log, fail=RuntimeError("boom")),
        ]
        with pytest.raises(RuntimeError, match="boom"):
            Workflow("demo", steps).run({})

        assert log == [("invoke", "a"), ("invoke", "b"), ("compensate", "undo-b"), ("compensate", "undo-a")]

    def test_cancellation_also_compensates(self):
        log = []
        steps = [RecordingStep("a", log), RecordingStep("b", log, fail=KeyboardInterrupt())]
        with pytest.raises(KeyboardInterrupt):
            Workflow("demo", steps).run({})
        assert log[-1] == ("compensate", "undo-a")


class TestCompleteCart:
    def test_creates_order_and_tickets(self, db, config, builder, jazz_night, make_cart):
        cart_id = make_cart([
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1, price="40.00"),
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2, price="40.00"),
        ])

        completed = CompleteCartWorkflow(db, config).run(cart_id)

        assert len(completed.ticket_ids) == 2
        order = db.query(Order).filter(Order.id == completed.order.id).one()
        assert order.cart_id == cart_id
        # two seats plus the service fee line
        assert len(order.items) == 3
        assert sum(i.total for i in order.items) == Decimal("88.00")
        assert db.query(Cart).filter(Cart.id == cart_id).one().completed_at is not None

    def test_cart_cannot_be_completed_twice(self, db, config, builder, jazz_night, make_cart):
        cart_id = make_cart([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1)])
        CompleteCartWorkflow(db, config).run(cart_id)

        with pytest.raises(ConflictError, match="already been completed"):
            CompleteCartWorkflow(db, config).run(cart_id)
        assert db.query(Order).count() == 1

    def test_empty_cart_is_rejected(self, db, config, make_cart):
        cart_id = make_cart([])
        with pytest.raises(InvalidArgumentError):
            CompleteCartWorkflow(db, config).run(cart_id)

    def test_unknown_cart(self, db, config):
        with pytest.raises(NotFoundError):
            CompleteCartWorkflow(db, config).run("missing")

    def test_guard_rejection_creates_no_order(self, db, config, builder, jazz_night, make_cart):
        cart_id = make_cart([
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1),
            builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 1),
        ])
        with pytest.raises(ConflictError, match="Duplicate seat"):
            CompleteCartWorkflow(db, config).run(cart_id)

        assert db.query(Order).count() == 0
        assert db.query(Ticket).count() == 0
        assert db.query(Cart).filter(Cart.id == cart_id).one().completed_at is None

    def test_later_failure_rolls_back_tickets_and_order(self, db, config, builder, open_mic, make_cart):
        cart_id = make_cart([builder.ga_item("Open Mic", OPEN_MIC_DATE, quantity=3)])
        workflow = CompleteCartWorkflow(db, config, extra_steps=[FailingStep(RuntimeError("mail server down"))])

        with pytest.raises(RuntimeError, match="mail server down"):
            workflow.run(cart_id)

        db.expire_all()
        assert db.query(Ticket).count() == 0
        assert db.query(Order).count() == 0
        assert db.query(OrderLineItem).count() == 0
        assert db.query(Cart).filter(Cart.id == cart_id).one().completed_at is None
        assert db.query(GeneralAccessAllocation).one().sold == 0

        # the reopened cart can still be completed
        completed = CompleteCartWorkflow(db, config).run(cart_id)
        assert len(completed.ticket_ids) == 3

    def test_cancellation_after_issuance_rolls_back(self, db, config, builder, jazz_night, make_cart):
        cart_id = make_cart([builder.seat_item("Jazz Night", "standard", JAZZ_DATE, "A", 2)])
        workflow = CompleteCartWorkflow(db, config, extra_steps=[FailingStep(KeyboardInterrupt())])

        with pytest.raises(KeyboardInterrupt):
            workflow.run(cart_id)

        db.expire_all()
        assert db.query(Ticket).count() == 0
        assert db.query(Order).count() == 0
