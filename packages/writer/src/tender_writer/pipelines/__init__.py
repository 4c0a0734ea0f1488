"""
tender_writer.pipelines — batch processing and the polling consumer.

    from tender_writer.pipelines.consumer import QueueConsumer, time_budget

    result = QueueConsumer.from_settings(settings).run(time_budget(840))
"""
