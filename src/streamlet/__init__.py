__version__ = "0.1.0"

# Core contracts
from .demand import Demand as Demand
from .completion import Completion as Completion
from .completion import FINISHED as FINISHED
from .errors import StreamError as StreamError
from .errors import DecodeError as DecodeError
from .errors import TransportError as TransportError
from .pubsub import Publisher as Publisher
from .pubsub import Subscriber as Subscriber
from .pubsub import Subscription as Subscription
from .pubsub import Cancellable as Cancellable
from .pubsub import AnyCancellable as AnyCancellable
from .pubsub import AsyncValues as AsyncValues
from .pubsub import cancel_all as cancel_all
from .subscription import DemandSubscription as DemandSubscription

# Publishers and subjects
from .publishers import SequencePublisher as SequencePublisher
from .publishers import Just as Just
from .publishers import Empty as Empty
from .publishers import Fail as Fail
from .publishers import AnyPublisher as AnyPublisher
from .subjects import PassthroughSubject as PassthroughSubject
from .subjects import CurrentValueSubject as CurrentValueSubject
from .subjects import Published as Published
from .multicast import ConnectablePublisher as ConnectablePublisher
from .multicast import Multicast as Multicast
from .sinks import Sink as Sink
from .sinks import Assign as Assign

# Collaborators
from .codecs import Codec as Codec
from .codecs import JSONCodec as JSONCodec
from .codecs import StringCodec as StringCodec
from .notifications import Notification as Notification
from .notifications import NotificationCenter as NotificationCenter
from .networking import DataResponse as DataResponse
from .networking import DataTaskPublisher as DataTaskPublisher
from .timer import Timer as Timer
from .timer import ScaledTimer as ScaledTimer
from .timer import FastForwardTimer as FastForwardTimer
from .timer import VirtualClock as VirtualClock
from .timer import TimerPublisher as TimerPublisher
from .timer import create_timer as create_timer
from .timer import schedule_once as schedule_once
from .timer import schedule_repeating as schedule_repeating

# Debug output
from .logging import TimeLogger as TimeLogger
from .logging import LoggerStream as LoggerStream
from .logging import logging_context as logging_context
